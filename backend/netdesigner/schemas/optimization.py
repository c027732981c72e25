from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime


class OptimizationCreate(BaseModel):
    design_id: str
    optimization_type: Literal["cost", "performance", "security", "reliability", "hybrid"] = "hybrid"
    parameters: Dict[str, Any] = {}


class OptimizationUpdate(BaseModel):
    parameters: Optional[Dict[str, Any]] = None
    notes: Optional[str] = Field(None, max_length=500)


class OptimizationResponse(BaseModel):
    id: str
    design_id: str
    user_id: str
    optimization_type: str
    parameters: Dict[str, Any] = {}
    notes: Optional[str] = None
    status: str
    improvements: List[Dict[str, Any]] = []
    metrics: Optional[Dict[str, Any]] = None
    recommendations: List[str] = []
    error_message: Optional[str] = None
    report_url: Optional[str] = None
    archived: bool = False
    cloned_from: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

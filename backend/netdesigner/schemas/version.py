from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Literal, Any, Dict
from datetime import datetime


class VersionCreate(BaseModel):
    bump: Literal["major", "minor", "patch"] = "minor"
    notes: Optional[str] = Field(None, max_length=500)
    tags: List[str] = []


class Change(BaseModel):
    path: str
    operation: Literal["add", "remove", "modify"]
    old_value: Any = None
    new_value: Any = None
    impact: Literal["low", "medium", "high", "critical"] = "low"
    description: Optional[str] = None


class VersionResponse(BaseModel):
    id: str
    design_id: str
    version: str
    semantic_version: Dict[str, int]
    snapshot: Dict[str, Any]
    created_by: Optional[str] = None
    changes: List[Change] = []
    notes: Optional[str] = None
    is_published: bool
    published_at: Optional[datetime] = None
    parent_version_id: Optional[str] = None
    tags: List[str] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

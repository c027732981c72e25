from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime


class TopologyResponse(BaseModel):
    id: str
    design_id: str
    user_id: str
    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, Any]] = []
    layout: Optional[Dict[str, Any]] = None
    generated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RenderedNode(BaseModel):
    id: str
    label: str
    type: str
    level: int
    x: float
    y: float
    subnet: Optional[str] = None
    vlan: Optional[int] = None


class RenderModel(BaseModel):
    topology_id: str
    design_id: str
    width: float
    height: float
    nodes: List[RenderedNode]
    edges: List[Dict[str, Any]]

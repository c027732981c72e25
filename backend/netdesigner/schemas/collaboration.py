from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List, Literal
from datetime import datetime


class ShareCreate(BaseModel):
    design_id: str
    user_id: Optional[str] = None
    team_id: Optional[str] = None
    permission: Literal["view", "comment", "edit"] = "view"

    @model_validator(mode="after")
    def require_target(self):
        if not self.user_id and not self.team_id:
            raise ValueError("Either user_id or team_id is required")
        return self


class ShareResponse(BaseModel):
    id: str
    design_id: str
    shared_by: str
    shared_with_user_id: Optional[str] = None
    shared_with_team_id: Optional[str] = None
    permission: str
    shared_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    design_id: str
    content: str = Field(..., min_length=1, max_length=1000)
    tagged_users: List[str] = []


class ReplyCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class ReplyResponse(BaseModel):
    id: str
    user_id: str
    content: str
    likes: List[str] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentResponse(BaseModel):
    id: str
    design_id: str
    user_id: str
    content: str
    likes: List[str] = []
    tagged_users: List[str] = []
    resolved: bool = False
    replies: List[ReplyResponse] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

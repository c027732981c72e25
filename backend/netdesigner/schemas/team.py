"""Pydantic schemas for teams and invitations"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator
from typing import Optional, List, Literal
from datetime import datetime


# ==================== Team Schemas ====================

class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = None
    is_active: Optional[bool] = None


class MemberAdd(BaseModel):
    user_id: str
    role: Literal["admin", "member"] = "member"


class TeamDesignAdd(BaseModel):
    design_id: str


class MemberUser(BaseModel):
    id: str
    name: Optional[str] = None
    email: str

    model_config = ConfigDict(from_attributes=True)


class TeamMemberResponse(BaseModel):
    user_id: str
    role: str
    joined_at: datetime
    user: Optional[MemberUser] = None

    model_config = ConfigDict(from_attributes=True)


class TeamResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    is_active: bool
    avatar: Optional[str] = None
    members: List[TeamMemberResponse] = []
    design_ids: List[str] = []
    last_modified_by: Optional[str] = None
    last_modified_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== Invitation Schemas ====================

class InvitationCreate(BaseModel):
    email: EmailStr
    role: Literal["member", "admin", "viewer"] = "member"

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class TeamInvitationCreate(InvitationCreate):
    """Invitation created through /invitations, team given in the body"""
    team_id: str


class InvitationToken(BaseModel):
    token: str = Field(..., min_length=10)


class InvitationResponse(BaseModel):
    id: str
    email: str
    invited_by: str
    team_id: str
    role: str
    status: str
    expires_at: datetime
    responded_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

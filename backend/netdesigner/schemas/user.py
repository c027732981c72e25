from pydantic import BaseModel, EmailStr, Field, ConfigDict, model_validator
from typing import Optional, Literal
from datetime import datetime


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    company: Optional[str] = Field(None, max_length=255)
    role: Literal["user", "network-admin"] = "user"
    password: str = Field(..., min_length=8)


class UserLogin(BaseModel):
    """Either email/password or an identity-provider ID token"""
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    id_token: Optional[str] = Field(None, alias="idToken")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def require_credentials(self):
        if not self.id_token and not (self.email and self.password):
            raise ValueError("Provide email and password, or an idToken")
        return self


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8)


class VerifyEmailRequest(BaseModel):
    token: str


class ConvertTrialRequest(BaseModel):
    plan_id: str


class SubscriptionInfo(BaseModel):
    plan_id: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    renewal: Optional[bool] = None


class TrialInfo(BaseModel):
    used: bool = False
    expires_at: Optional[datetime] = None


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    company: Optional[str] = None
    role: str
    is_active: bool
    is_verified: bool
    subscription: SubscriptionInfo
    trial: TrialInfo
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    company: Optional[str] = None
    role: str
    access_token: str
    refresh_token: str


class LoginResponse(BaseModel):
    message: str = "Login successful"
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginHistoryResponse(BaseModel):
    id: str
    user_id: str
    ip_address: Optional[str] = None
    ipv6_address: Optional[str] = None
    user_agent: Optional[str] = None
    location: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

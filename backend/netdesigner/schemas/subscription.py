"""Pydantic schemas for plans, payments and payment analytics"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime


class PlanResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    currency: str
    billing_period: str
    max_designs: int
    paystack_plan_code: str
    features: Dict[str, Any] = {}
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class PlanWithProviderStatus(PlanResponse):
    paystack_active: bool = False


class InitializePaymentRequest(BaseModel):
    email: EmailStr
    plan_id: str
    callback_url: Optional[str] = None


class SubscribeRequest(BaseModel):
    plan_id: str
    authorization_code: Optional[str] = None


class ChangePlanRequest(BaseModel):
    plan_id: str


class PaymentMethodUpdate(BaseModel):
    authorization_code: str


class TrackEventRequest(BaseModel):
    event: str
    payload: Dict[str, Any] = {}
    session_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class SubscriptionDetails(BaseModel):
    plan: Optional[PlanResponse] = None
    status: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    renewal: Optional[bool] = None
    amount: Optional[float] = None
    next_payment_date: Optional[str] = None
    trial: Dict[str, Any] = {}


class Invoice(BaseModel):
    reference: str
    amount: float
    currency: Optional[str] = None
    status: str
    paid_at: Optional[str] = None
    channel: Optional[str] = None


class AnalyticsSummary(BaseModel):
    total_events: int
    events: Dict[str, int]
    devices: Dict[str, int]
    conversion_rate: float
    period_days: int = Field(default=30)
    recent: List[Dict[str, Any]] = []

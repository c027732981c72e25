"""Billing models: subscription plans mirrored from Paystack and payment analytics"""
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Float, Text, JSON, ForeignKey, Index
from datetime import datetime
import enum
import re

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class BillingPeriod(str, enum.Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


DEFAULT_PLAN_FEATURES = {
    "max_designs": 5,
    "max_team_members": 1,
    "advanced_visualization": False,
    "equipment_recommendations": False,
    "config_templates": False,
    "api_access": False,
    "priority_support": False,
    "export_formats": ["pdf"],
}


class SubscriptionPlan(Base):
    """Plan synchronised from the payment provider"""
    __tablename__ = "subscription_plans"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)  # major currency units
    currency = Column(String(3), default="NGN")
    billing_period = Column(SQLEnum(BillingPeriod), default=BillingPeriod.MONTHLY, nullable=False)
    max_designs = Column(Integer, default=5, nullable=False)

    paystack_plan_code = Column(String(100), unique=True, nullable=False, index=True)
    paystack_plan_id = Column(String(100), nullable=True)

    features = Column(JSON, default=lambda: dict(DEFAULT_PLAN_FEATURES))
    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def has_feature(self, feature: str) -> bool:
        return bool((self.features or {}).get(feature))

    def __repr__(self):
        return f"<SubscriptionPlan {self.name} ({self.paystack_plan_code})>"


class PaymentEvent(str, enum.Enum):
    """Client-side payment funnel events"""
    PAYMENT_INITIALIZED = "payment_initialized"
    PAYMENT_INITIALIZATION_SUCCESS = "payment_initialization_success"
    PAYMENT_INITIALIZATION_FAILED = "payment_initialization_failed"
    PAYMENT_VERIFICATION_STARTED = "payment_verification_started"
    PAYMENT_VERIFICATION_SUCCESS = "payment_verification_success"
    PAYMENT_VERIFICATION_FAILED = "payment_verification_failed"
    PAYMENT_CALLBACK_TRIGGERED = "payment_callback_triggered"
    PAYMENT_COMPLETE = "payment_complete"
    PAYMENT_TIMEOUT = "payment_timeout"
    PAYMENT_MISSING_REFERENCE = "payment_missing_reference"


class DeviceType(str, enum.Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"
    UNKNOWN = "unknown"


def detect_device_type(user_agent: str) -> DeviceType:
    """Rough device classification from a User-Agent header"""
    if not user_agent:
        return DeviceType.UNKNOWN
    ua = user_agent.lower()
    if re.search(r"mobile", ua):
        return DeviceType.MOBILE
    if re.search(r"tablet|ipad", ua):
        return DeviceType.TABLET
    if re.search(r"desktop|windows nt|macintosh|x11", ua):
        return DeviceType.DESKTOP
    return DeviceType.UNKNOWN


class PaymentAnalytics(Base):
    """Payment funnel event; purged after ANALYTICS_RETENTION_DAYS"""
    __tablename__ = "payment_analytics"

    __table_args__ = (
        Index('ix_payment_analytics_event_user', 'event', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    event = Column(SQLEnum(PaymentEvent), nullable=False, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    user_agent = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    session_id = Column(String(100), nullable=True, index=True)
    device_type = Column(SQLEnum(DeviceType), default=DeviceType.UNKNOWN)
    extra_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<PaymentAnalytics {self.event}>"

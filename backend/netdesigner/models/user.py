from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    ADMIN = "admin"
    NETWORK_ADMIN = "network-admin"
    USER = "user"


class SubscriptionStatus(str, enum.Enum):
    """State of a user's paid subscription"""
    INACTIVE = "inactive"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    PAUSED = "paused"
    CANCELED = "canceled"


class User(Base):
    """User model"""
    __tablename__ = "users"

    __table_args__ = (
        Index('ix_users_company', 'company'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    firebase_uid = Column(String(128), unique=True, nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=True)

    role = Column(SQLEnum(UserRole), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True)
    is_verified = Column(Boolean, default=False)

    # Incremented on logout; refresh tokens carrying an older version are rejected
    token_version = Column(Integer, default=0, nullable=False)

    # Subscription
    subscription_plan_id = Column(GUID, ForeignKey("subscription_plans.id", ondelete="SET NULL"), nullable=True)
    subscription_status = Column(SQLEnum(SubscriptionStatus), default=SubscriptionStatus.INACTIVE, nullable=False)
    subscription_start_date = Column(DateTime, nullable=True)
    subscription_end_date = Column(DateTime, nullable=True)
    payment_method_id = Column(String(255), nullable=True)
    paystack_subscription_code = Column(String(100), nullable=True, index=True)
    paystack_customer_code = Column(String(100), nullable=True, index=True)
    paystack_email_token = Column(String(100), nullable=True)
    subscription_renewal = Column(Boolean, default=True)

    # Trial
    trial_used = Column(Boolean, default=False)
    trial_expires_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    plan = relationship("SubscriptionPlan", lazy="selectin")
    login_history = relationship("LoginHistory", back_populates="user", cascade="all, delete-orphan")

    @property
    def trial_active(self) -> bool:
        """Trial still grants access (never consumed, or not yet expired)"""
        if not self.trial_used:
            return True
        return bool(self.trial_expires_at and self.trial_expires_at > datetime.utcnow())

    @property
    def subscription(self) -> dict:
        return {
            "plan_id": self.subscription_plan_id,
            "status": self.subscription_status.value if self.subscription_status else None,
            "start_date": self.subscription_start_date,
            "end_date": self.subscription_end_date,
            "payment_method_id": self.payment_method_id,
            "paystack_subscription_code": self.paystack_subscription_code,
            "paystack_customer_code": self.paystack_customer_code,
            "renewal": self.subscription_renewal,
        }

    @property
    def trial(self) -> dict:
        return {"used": bool(self.trial_used), "expires_at": self.trial_expires_at}

    def __repr__(self):
        return f"<User {self.email}>"

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class LoginHistory(Base):
    """One row per successful sign-in"""
    __tablename__ = "login_history"

    __table_args__ = (
        Index('ix_login_history_user_created', 'user_id', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ip_address = Column(String(45), nullable=True)
    ipv6_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="login_history")

    def __repr__(self):
        return f"<LoginHistory {self.user_id} {self.created_at}>"

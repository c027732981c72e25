from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text, JSON, ForeignKey, Index
from datetime import datetime, timedelta
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


NOTIFICATION_TTL = timedelta(days=30)


class NotificationType(str, enum.Enum):
    DESIGN_SHARED = "design_shared"
    TEAM_DESIGN_SHARED = "team_design_shared"
    COMMENT_ADDED = "comment_added"
    COMMENT_REPLY = "comment_reply"
    COMMENT_TAG = "comment_tag"
    COMMENT_LIKE = "comment_like"
    TEAM_INVITE = "team_invite"
    TEAM_MENTION = "team_mention"
    DESIGN_UPDATED = "design_updated"
    ACCESS_LEVEL_CHANGED = "access_level_changed"


def default_notification_expiry() -> datetime:
    return datetime.utcnow() + NOTIFICATION_TTL


class Notification(Base):
    """In-app notification addressed to a user or to a whole team"""
    __tablename__ = "notifications"

    __table_args__ = (
        Index('ix_notifications_recipient_read_created', 'recipient_id', 'read', 'created_at'),
        Index('ix_notifications_team_read_created', 'team_id', 'read', 'created_at'),
        Index('ix_notifications_expires_at', 'expires_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    recipient_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(GUID, ForeignKey("teams.id", ondelete="CASCADE"), nullable=True)
    sender_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
    # design_id, comment_id, team_id, design_name, permission, previous_permission, new_permission
    data = Column("metadata", JSON, nullable=False, default=dict)

    read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=False, default=default_notification_expiry)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def mark_read(self) -> None:
        self.read = True
        self.read_at = datetime.utcnow()

    def __repr__(self):
        return f"<Notification {self.type.value} -> {self.recipient_id}>"

"""
Notification helpers: metadata validation, creation and recipient scoping.

A notification is visible to its recipient and, when it carries a team, to
every member of that team.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy import select, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from netdesigner.core.exceptions import ValidationError
from netdesigner.core.logging_config import logger
from netdesigner.models.notification import Notification, NotificationType
from netdesigner.models.team import TeamMember


SHARE_TYPES = {NotificationType.DESIGN_SHARED, NotificationType.TEAM_DESIGN_SHARED}
COMMENT_TYPES = {
    NotificationType.COMMENT_ADDED,
    NotificationType.COMMENT_REPLY,
    NotificationType.COMMENT_TAG,
    NotificationType.COMMENT_LIKE,
}

REQUIRED_METADATA = {
    **{t: ("design_id", "design_name") for t in SHARE_TYPES},
    **{t: ("design_id", "comment_id") for t in COMMENT_TYPES},
    NotificationType.TEAM_INVITE: ("team_id",),
    NotificationType.ACCESS_LEVEL_CHANGED: ("design_id", "new_permission", "previous_permission"),
}


def validate_metadata(notification_type: NotificationType, metadata: Optional[Dict[str, Any]]) -> None:
    """Each type requires its own metadata keys"""
    metadata = metadata or {}
    missing = [key for key in REQUIRED_METADATA.get(notification_type, ()) if not metadata.get(key)]
    if missing:
        raise ValidationError(
            f"{notification_type.value} notifications require {', '.join(missing)} in metadata",
            field="metadata",
            errors=[f"Missing metadata: {key}" for key in missing],
        )


def build_notification(
    recipient_id: str,
    notification_type: NotificationType,
    title: str,
    message: str,
    metadata: Optional[Dict[str, Any]] = None,
    sender_id: Optional[str] = None,
    team_id: Optional[str] = None,
) -> Notification:
    validate_metadata(notification_type, metadata)
    return Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        team_id=team_id,
        type=notification_type,
        title=title,
        message=message,
        data={key: value for key, value in (metadata or {}).items() if value is not None},
    )


def notify(db: AsyncSession, *args, **kwargs) -> Notification:
    """Validate and add a notification to the session"""
    notification = build_notification(*args, **kwargs)
    db.add(notification)
    logger.debug(f"[Notifications] {notification.type.value} -> {notification.recipient_id}")
    return notification


async def user_team_ids(db: AsyncSession, user_id: str) -> List[str]:
    result = await db.execute(select(TeamMember.team_id).where(TeamMember.user_id == user_id))
    return [row[0] for row in result.all()]


async def visible_filter(db: AsyncSession, user_id: str):
    """Recipient is the user, or the notification targets one of the user's teams; expired excluded"""
    team_ids = await user_team_ids(db, user_id)
    audience = Notification.recipient_id == user_id
    if team_ids:
        audience = or_(audience, Notification.team_id.in_(team_ids))
    return and_(audience, Notification.expires_at > datetime.utcnow())

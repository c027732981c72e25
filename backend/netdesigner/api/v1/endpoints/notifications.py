from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User
from netdesigner.models.notification import Notification, NotificationType
from netdesigner.schemas.notification import NotificationResponse
from netdesigner.modules.auth.dependencies import get_current_user
from netdesigner.services.notification_service import visible_filter


router = APIRouter()


async def get_notification_or_404(notification_id: str, user: User, db: AsyncSession) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            await visible_filter(db, user.id),
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    read: Optional[bool] = Query(None),
    type: Optional[NotificationType] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Notifications for the user and their teams, newest first"""
    query = select(Notification).where(await visible_filter(db, current_user.id))
    if read is not None:
        query = query.where(Notification.read == read)
    if type is not None:
        query = query.where(Notification.type == type)

    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
    return result.scalars().all()


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(func.count(Notification.id)).where(
            await visible_filter(db, current_user.id),
            Notification.read == False,
        )
    )
    return {"count": result.scalar() or 0}


@router.patch("/mark-all-read")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Notification).where(
            await visible_filter(db, current_user.id),
            Notification.read == False,
        )
    )
    notifications = result.scalars().all()
    for notification in notifications:
        notification.mark_read()
    await db.commit()

    logger.info(f"[Notifications] {len(notifications)} marked read for {current_user.id}")
    return {"message": "All notifications marked as read", "updated": len(notifications)}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await get_notification_or_404(notification_id, current_user, db)
    if not notification.read:
        notification.mark_read()
        await db.commit()
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await get_notification_or_404(notification_id, current_user, db)
    await db.delete(notification)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)

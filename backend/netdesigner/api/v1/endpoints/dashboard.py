"""
Dashboard API

Per-user counters, recent items and a 30-day activity chart.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Dict, Any, List
from datetime import datetime, timedelta, date

from netdesigner.core.database import get_db
from netdesigner.models.user import User
from netdesigner.models.design import NetworkDesign
from netdesigner.models.team import Team, Invitation, InvitationStatus
from netdesigner.models.report import NetworkReport
from netdesigner.models.notification import Notification
from netdesigner.models.topology import NetworkTopology
from netdesigner.models.login_history import LoginHistory
from netdesigner.modules.auth.dependencies import get_current_user


router = APIRouter()

ACTIVITY_DAYS = 30
RECENT_LIMIT = 5


async def count(db: AsyncSession, column, *conditions) -> int:
    result = await db.execute(select(func.count(column)).where(*conditions))
    return result.scalar() or 0


def day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


async def daily_counts(db: AsyncSession, column, *conditions) -> Dict[date, int]:
    result = await db.execute(select(column).where(*conditions))
    counts: Dict[date, int] = {}
    for (created_at,) in result.all():
        counts[created_at.date()] = counts.get(created_at.date(), 0) + 1
    return counts


async def activity_data(db: AsyncSession, user_id: str) -> Dict[str, List]:
    """Sign-ins and designs created per day, oldest first"""
    today = datetime.utcnow().date()
    start = today - timedelta(days=ACTIVITY_DAYS - 1)
    since = datetime.combine(start, datetime.min.time())

    sign_ins = await daily_counts(
        db, LoginHistory.created_at, LoginHistory.user_id == user_id, LoginHistory.created_at >= since
    )
    designs = await daily_counts(
        db, NetworkDesign.created_at, NetworkDesign.user_id == user_id, NetworkDesign.created_at >= since
    )

    days = [start + timedelta(days=offset) for offset in range(ACTIVITY_DAYS)]
    return {
        "labels": [day_label(day) for day in days],
        "sign_ins": [sign_ins.get(day, 0) for day in days],
        "designs_created": [designs.get(day, 0) for day in days],
    }


def recent(rows, name_attr: str) -> List[Dict[str, Any]]:
    return [
        {"id": row.id, "display_name": getattr(row, name_attr), "created_at": row.created_at}
        for row in rows
    ]


@router.get("/")
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user_id = current_user.id

    invitation_rows = await db.execute(
        select(Invitation.status, func.count(Invitation.id))
        .where(Invitation.invited_by == user_id)
        .group_by(Invitation.status)
    )
    invitations = {status.value: total for status, total in invitation_rows.all()}

    recent_designs = await db.execute(
        select(NetworkDesign).where(NetworkDesign.user_id == user_id)
        .order_by(NetworkDesign.created_at.desc()).limit(RECENT_LIMIT)
    )
    recent_reports = await db.execute(
        select(NetworkReport).where(NetworkReport.user_id == user_id)
        .order_by(NetworkReport.created_at.desc()).limit(RECENT_LIMIT)
    )
    recent_notifications = await db.execute(
        select(Notification).where(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc()).limit(RECENT_LIMIT)
    )

    return {
        "stats": {
            "designs_created": await count(db, NetworkDesign.id, NetworkDesign.user_id == user_id),
            "designs_optimized": await count(
                db, NetworkDesign.id, NetworkDesign.user_id == user_id, NetworkDesign.optimized == True
            ),
            "designs_visualized": await count(db, NetworkTopology.id, NetworkTopology.user_id == user_id),
            "teams_created": await count(db, Team.id, Team.created_by == user_id),
            "individuals_invited": sum(invitations.values()),
            "invitations_accepted": invitations.get(InvitationStatus.ACCEPTED.value, 0),
            "invitations_pending": invitations.get(InvitationStatus.PENDING.value, 0),
            "invitations_declined": invitations.get(InvitationStatus.DECLINED.value, 0),
        },
        "recent_items": {
            "designs": recent(recent_designs.scalars().all(), "design_name"),
            "reports": recent(recent_reports.scalars().all(), "title"),
            "notifications": recent(recent_notifications.scalars().all(), "title"),
        },
        "activity_data": await activity_data(db, user_id),
    }


@router.get("/activity")
async def get_activity(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await activity_data(db, current_user.id)

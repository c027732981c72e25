"""Login history API"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from netdesigner.core.database import get_db
from netdesigner.models.user import User, UserRole
from netdesigner.models.login_history import LoginHistory
from netdesigner.schemas.user import LoginHistoryResponse
from netdesigner.modules.auth.dependencies import get_current_user


router = APIRouter()

HISTORY_LIMIT = 50


@router.get("/{user_id}", response_model=List[LoginHistoryResponse])
async def get_login_history(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Newest sign-ins of a user; visible to that user and to admins"""
    if str(current_user.id) != user_id and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Not authorized to view this login history")

    result = await db.execute(
        select(LoginHistory)
        .where(LoginHistory.user_id == user_id)
        .order_by(LoginHistory.created_at.desc())
        .limit(HISTORY_LIMIT)
    )
    return result.scalars().all()

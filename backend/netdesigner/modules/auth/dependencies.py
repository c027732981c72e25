from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional
import uuid

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import set_user_id
from netdesigner.core.security import decode_token
from netdesigner.models.user import User, UserRole, SubscriptionStatus
from netdesigner.models.design import NetworkDesign, DesignStatus
from netdesigner.models.team import TeamMember, TeamDesign
from netdesigner.models.collaboration import DesignShare
from netdesigner.core.config import settings

security = HTTPBearer(auto_error=False)


async def load_user_from_token(token: str, db: AsyncSession) -> User:
    """Resolve an access token to an active user, raising 401/403 otherwise"""
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    try:
        uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await load_user_from_token(credentials.credentials, db)

    # Rate limiter keys on the user; logs carry the id
    request.state.user_id = str(user.id)
    set_user_id(str(user.id))
    return user


def require_role(*roles: UserRole):
    """Dependency factory: 403 unless the user has one of the roles"""
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action"
            )
        return current_user
    return checker


get_current_admin = require_role(UserRole.ADMIN)


# ==================== Subscription guards ====================

def require_subscription(feature: str):
    """
    Dependency factory for plan features.

    Users still inside their trial pass; everyone else needs an active
    subscription whose plan includes the feature.
    """
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.trial_active:
            return current_user

        if current_user.subscription_status != SubscriptionStatus.ACTIVE:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Subscription inactive"
            )

        if not current_user.plan or not current_user.plan.has_feature(feature):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Feature not available"
            )
        return current_user
    return checker


async def count_active_designs(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(NetworkDesign.id)).where(
            NetworkDesign.user_id == user_id,
            NetworkDesign.design_status != DesignStatus.ARCHIVED,
        )
    )
    return result.scalar() or 0


async def check_design_limit(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Design quota for the current user: the plan's max_designs, or the trial
    allowance while the trial is active.

    Returns {current, limit, remaining}.
    """
    if current_user.plan is not None:
        limit = current_user.plan.max_designs
    elif current_user.trial_active:
        limit = settings.TRIAL_MAX_DESIGNS
    else:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active subscription plan found"
        )

    current = await count_active_designs(db, current_user.id)
    if current >= limit:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Design limit reached for your plan",
                "limit": limit,
                "current": current,
            }
        )

    return {"current": current, "limit": limit, "remaining": limit - current}


# ==================== Design access ====================

async def user_can_access_design(db: AsyncSession, design: NetworkDesign, user_id: str) -> bool:
    """Owner, member of a team the design belongs to, or share recipient"""
    if str(design.user_id) == str(user_id):
        return True

    team_ids = select(TeamMember.team_id).where(TeamMember.user_id == user_id)

    linked = await db.execute(
        select(TeamDesign.id).where(
            TeamDesign.design_id == design.id,
            TeamDesign.team_id.in_(team_ids),
        ).limit(1)
    )
    if linked.first():
        return True

    if design.team_id:
        member = await db.execute(
            select(TeamMember.id).where(
                TeamMember.team_id == design.team_id,
                TeamMember.user_id == user_id,
            ).limit(1)
        )
        if member.first():
            return True

    shared = await db.execute(
        select(DesignShare.id).where(
            DesignShare.design_id == design.id,
            or_(
                DesignShare.shared_with_user_id == user_id,
                DesignShare.shared_with_team_id.in_(team_ids),
            ),
        ).limit(1)
    )
    return shared.first() is not None


async def get_design_or_404(db: AsyncSession, design_id: str) -> NetworkDesign:
    design = await db.get(NetworkDesign, design_id)
    if not design:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Design not found"
        )
    return design


async def get_owned_design(db: AsyncSession, design_id: str, user: User) -> NetworkDesign:
    """404 unless the design exists and belongs to the user"""
    design = await db.get(NetworkDesign, design_id)
    if not design or str(design.user_id) != str(user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Design not found"
        )
    return design


async def get_accessible_design(db: AsyncSession, design_id: str, user: User) -> NetworkDesign:
    """404 when missing, 403 when the user has no access"""
    design = await get_design_or_404(db, design_id)
    if not await user_can_access_design(db, design, user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this design"
        )
    return design

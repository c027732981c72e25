"""
Invitation API

Invitation-centric routes: invite into a team named in the body, list the
invitations addressed to the current user, and accept one by token.
"""

from fastapi import APIRouter, Depends, BackgroundTasks, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from netdesigner.core.database import get_db
from netdesigner.core.rate_limiter import invite_rate_limit
from netdesigner.models.user import User
from netdesigner.models.team import Invitation, InvitationStatus
from netdesigner.schemas.team import TeamInvitationCreate, InvitationToken, InvitationResponse, TeamResponse
from netdesigner.modules.auth.dependencies import get_current_user
from netdesigner.api.v1.endpoints.teams import get_team_or_404, create_invitation, accept_invitation_token


router = APIRouter()


@router.post("/", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
@invite_rate_limit()
async def send_invitation(
    request: Request,
    invitation_data: TeamInvitationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    team = await get_team_or_404(invitation_data.team_id, db)
    return await create_invitation(
        team, invitation_data.email, invitation_data.role, current_user, db, background_tasks
    )


@router.get("/", response_model=List[InvitationResponse])
async def list_my_invitations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Pending invitations addressed to the current user's email"""
    result = await db.execute(
        select(Invitation)
        .where(
            Invitation.email == current_user.email.lower(),
            Invitation.status == InvitationStatus.PENDING,
        )
        .order_by(Invitation.created_at.desc())
    )
    return [invitation for invitation in result.scalars().all() if not invitation.is_expired]


@router.post("/accept", response_model=TeamResponse)
async def accept_invitation(
    token_data: InvitationToken,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await accept_invitation_token(token_data.token, current_user, db)

"""
Team Collaboration API

Teams, memberships, invitations and team-assigned designs. Owners and admins
manage members and invitations; the owner alone deletes the team.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Request, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from typing import List, Optional
from datetime import datetime

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.core.rate_limiter import invite_rate_limit
from netdesigner.models.user import User
from netdesigner.models.design import NetworkDesign
from netdesigner.models.team import (
    Team, TeamMember, TeamDesign, TeamRole,
    Invitation, InvitationRole, InvitationStatus,
)
from netdesigner.models.notification import NotificationType
from netdesigner.schemas.team import (
    TeamCreate, TeamUpdate, TeamResponse, TeamMemberResponse, MemberAdd, TeamDesignAdd,
    InvitationCreate, InvitationToken, InvitationResponse,
)
from netdesigner.schemas.design import DesignResponse
from netdesigner.modules.auth.dependencies import get_current_user
from netdesigner.services.email_service import email_service
from netdesigner.services.notification_service import notify


router = APIRouter()


# ==================== Helper Functions ====================

async def get_team_or_404(team_id: str, db: AsyncSession) -> Team:
    """Get team by ID (members and design links reloaded) or raise 404"""
    result = await db.execute(
        select(Team)
        .where(Team.id == team_id)
        .execution_options(populate_existing=True)
    )
    team = result.scalar_one_or_none()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


def require_team_member(team: Team, user: User) -> TeamMember:
    member = team.get_member(user.id)
    if not member:
        raise HTTPException(status_code=403, detail="Not a member of this team")
    return member


def require_team_manager(team: Team, user: User) -> TeamMember:
    """Owner or admin"""
    member = require_team_member(team, user)
    if not member.can_manage:
        raise HTTPException(status_code=403, detail="Only team owners and admins can perform this action")
    return member


async def get_invitation_by_token(token: str, db: AsyncSession) -> Invitation:
    result = await db.execute(select(Invitation).where(Invitation.token == token))
    invitation = result.scalar_one_or_none()
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")
    return invitation


async def create_invitation(
    team: Team,
    email: str,
    role: str,
    inviter: User,
    db: AsyncSession,
    background_tasks: BackgroundTasks,
) -> Invitation:
    """
    Create (or renew a previously answered) invitation, email the link and
    notify the invitee when they already have an account.
    """
    require_team_manager(team, inviter)
    email = email.lower()

    invitee = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if invitee and team.get_member(invitee.id):
        raise HTTPException(status_code=400, detail="User is already a member of this team")

    result = await db.execute(
        select(Invitation).where(and_(Invitation.email == email, Invitation.team_id == team.id))
    )
    invitation = result.scalar_one_or_none()
    if invitation and invitation.status == InvitationStatus.PENDING and not invitation.is_expired:
        raise HTTPException(status_code=400, detail="An invitation is already pending for this email")

    if invitation:
        invitation.renew()
        invitation.role = InvitationRole(role)
        invitation.invited_by = inviter.id
    else:
        invitation = Invitation(
            email=email,
            team_id=team.id,
            invited_by=inviter.id,
            role=InvitationRole(role),
        )
        db.add(invitation)
    await db.flush()

    if invitee:
        notify(
            db,
            recipient_id=invitee.id,
            notification_type=NotificationType.TEAM_INVITE,
            title="Team invitation",
            message=f"{inviter.name or inviter.email} invited you to join {team.name}",
            metadata={"team_id": team.id, "invitation_id": invitation.id},
            sender_id=inviter.id,
        )

    team.touch(inviter.id)
    await db.commit()

    background_tasks.add_task(
        email_service.send_invitation_email,
        to_email=email,
        inviter_name=inviter.name,
        team_name=team.name,
        role=role,
        token=invitation.token,
    )
    logger.info(f"[Teams] {inviter.id} invited {email} to team {team.id} as {role}")
    return invitation


async def accept_invitation_token(token: str, user: User, db: AsyncSession) -> Team:
    invitation = await get_invitation_by_token(token, db)

    if invitation.status != InvitationStatus.PENDING:
        raise HTTPException(status_code=400, detail="Invitation is no longer valid")

    if invitation.is_expired:
        invitation.status = InvitationStatus.EXPIRED
        await db.commit()
        raise HTTPException(status_code=400, detail="Invitation has expired")

    team = await get_team_or_404(invitation.team_id, db)
    if not team.get_member(user.id):
        team.members.append(TeamMember(user_id=user.id, role=invitation.member_role))

    invitation.status = InvitationStatus.ACCEPTED
    invitation.responded_at = datetime.utcnow()
    team.touch(user.id)
    await db.commit()

    logger.info(f"[Teams] User {user.id} joined team {team.id} as {invitation.member_role.value}")
    return await get_team_or_404(team.id, db)


# ==================== Team CRUD ====================

@router.post("/", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    team_data: TeamCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a team; the creator becomes its owner"""
    team = Team(
        name=team_data.name,
        description=team_data.description,
        avatar=team_data.avatar,
        created_by=current_user.id,
        last_modified_by=current_user.id,
        members=[TeamMember(user_id=current_user.id, role=TeamRole.OWNER)],
        design_links=[],
    )
    db.add(team)
    await db.commit()

    logger.info(f"[Teams] Created team {team.id} by user {current_user.id}")
    return await get_team_or_404(team.id, db)


@router.get("/", response_model=List[TeamResponse])
async def list_teams(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Teams the user belongs to"""
    result = await db.execute(
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == current_user.id)
        .order_by(Team.last_modified_at.desc())
    )
    return result.scalars().unique().all()


@router.get("/members", response_model=List[TeamMemberResponse])
async def list_owned_team_members(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Members of every team the user owns, one entry per user"""
    result = await db.execute(
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == current_user.id, TeamMember.role == TeamRole.OWNER)
    )
    seen = set()
    members = []
    for team in result.scalars().unique().all():
        for member in team.members:
            if member.user_id in seen:
                continue
            seen.add(member.user_id)
            members.append(member)
    return members


@router.get("/invitations/sent", response_model=List[InvitationResponse])
async def list_sent_invitations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Invitation)
        .where(Invitation.invited_by == current_user.id)
        .order_by(Invitation.created_at.desc())
    )
    return result.scalars().all()


@router.delete("/invitations/{invitation_id}")
async def cancel_invitation(
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    invitation = await db.get(Invitation, invitation_id)
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")

    team = await get_team_or_404(invitation.team_id, db)
    if str(invitation.invited_by) != str(current_user.id):
        require_team_manager(team, current_user)

    await db.delete(invitation)
    await db.commit()
    logger.info(f"[Teams] Invitation {invitation_id} cancelled by {current_user.id}")
    return {"message": "Invitation cancelled"}


@router.post("/invitations/{invitation_id}/resend", response_model=InvitationResponse)
async def resend_invitation(
    invitation_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """New token and expiry, then email again"""
    invitation = await db.get(Invitation, invitation_id)
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")

    team = await get_team_or_404(invitation.team_id, db)
    require_team_manager(team, current_user)

    if invitation.status == InvitationStatus.ACCEPTED:
        raise HTTPException(status_code=400, detail="Invitation has already been accepted")

    invitation.renew()
    await db.commit()

    background_tasks.add_task(
        email_service.send_invitation_email,
        to_email=invitation.email,
        inviter_name=current_user.name,
        team_name=team.name,
        role=invitation.role.value,
        token=invitation.token,
    )
    logger.info(f"[Teams] Invitation {invitation.id} resent")
    return invitation


@router.post("/accept-invite", response_model=TeamResponse)
async def accept_invite(
    token_data: InvitationToken,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await accept_invitation_token(token_data.token, current_user, db)


@router.post("/decline-invite")
async def decline_invite(
    token_data: InvitationToken,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    invitation = await get_invitation_by_token(token_data.token, db)
    if invitation.status != InvitationStatus.PENDING:
        raise HTTPException(status_code=400, detail="Invitation is no longer valid")

    invitation.status = InvitationStatus.DECLINED
    invitation.responded_at = datetime.utcnow()
    await db.commit()
    logger.info(f"[Teams] Invitation {invitation.id} declined by {current_user.id}")
    return {"message": "Invitation declined"}


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(
    team_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Team details; members only"""
    team = await get_team_or_404(team_id, db)
    require_team_member(team, current_user)
    return team


@router.put("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    team_data: TeamUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    team = await get_team_or_404(team_id, db)
    require_team_manager(team, current_user)

    for field, value in team_data.model_dump(exclude_unset=True).items():
        setattr(team, field, value)
    team.touch(current_user.id)
    await db.commit()

    return await get_team_or_404(team_id, db)


@router.delete("/{team_id}")
async def delete_team(
    team_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete the team (owner only)"""
    team = await get_team_or_404(team_id, db)
    member = require_team_member(team, current_user)
    if member.role != TeamRole.OWNER:
        raise HTTPException(status_code=403, detail="Only the team owner can delete the team")

    await db.delete(team)
    await db.commit()
    logger.info(f"[Teams] Team {team_id} deleted by {current_user.id}")
    return {"message": "Team deleted successfully"}


# ==================== Members ====================

@router.post("/{team_id}/members", response_model=TeamResponse)
async def add_member(
    team_id: str,
    member_data: MemberAdd,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    team = await get_team_or_404(team_id, db)
    require_team_manager(team, current_user)

    user = await db.get(User, member_data.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if team.get_member(user.id):
        raise HTTPException(status_code=400, detail="User is already a member of this team")

    team.members.append(TeamMember(user_id=user.id, role=TeamRole(member_data.role)))
    team.touch(current_user.id)
    await db.commit()

    logger.info(f"[Teams] User {user.id} added to team {team_id} as {member_data.role}")
    return await get_team_or_404(team_id, db)


@router.delete("/{team_id}/members/{member_id}", response_model=TeamResponse)
async def remove_member(
    team_id: str,
    member_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a member by user id; the owner cannot remove themselves"""
    team = await get_team_or_404(team_id, db)
    manager = require_team_manager(team, current_user)

    member = team.get_member(member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    if str(member.user_id) == str(current_user.id) and manager.role == TeamRole.OWNER:
        raise HTTPException(status_code=400, detail="Team owner cannot remove themselves")
    if member.role == TeamRole.OWNER:
        raise HTTPException(status_code=403, detail="The team owner cannot be removed")

    team.members.remove(member)
    team.touch(current_user.id)
    await db.commit()

    logger.info(f"[Teams] User {member_id} removed from team {team_id}")
    return await get_team_or_404(team_id, db)


@router.post("/{team_id}/invite", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
@invite_rate_limit()
async def invite_member(
    request: Request,
    team_id: str,
    invitation_data: InvitationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Invite by email (rate limited: 5 per 15 minutes)"""
    team = await get_team_or_404(team_id, db)
    return await create_invitation(
        team, invitation_data.email, invitation_data.role, current_user, db, background_tasks
    )


# ==================== Team Designs ====================

@router.get("/{team_id}/designs", response_model=List[DesignResponse])
async def list_team_designs(
    team_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    team = await get_team_or_404(team_id, db)
    require_team_member(team, current_user)

    if not team.design_ids:
        return []
    result = await db.execute(
        select(NetworkDesign)
        .where(NetworkDesign.id.in_(team.design_ids))
        .order_by(NetworkDesign.updated_at.desc())
    )
    return result.scalars().all()


@router.post("/{team_id}/designs", response_model=TeamResponse)
async def add_team_design(
    team_id: str,
    design_data: TeamDesignAdd,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Assign one of the user's own designs to the team"""
    team = await get_team_or_404(team_id, db)
    require_team_member(team, current_user)

    design = await db.get(NetworkDesign, design_data.design_id)
    if not design or str(design.user_id) != str(current_user.id):
        raise HTTPException(status_code=404, detail="Design not found or not owned by you")

    if design.id in team.design_ids:
        raise HTTPException(status_code=400, detail="Design is already assigned to this team")

    team.design_links.append(TeamDesign(design_id=design.id, added_by=current_user.id))
    design.team_id = team.id
    team.touch(current_user.id)
    await db.commit()

    logger.info(f"[Teams] Design {design.id} assigned to team {team_id}")
    return await get_team_or_404(team_id, db)


@router.delete("/{team_id}/designs/{design_id}", response_model=TeamResponse)
async def remove_team_design(
    team_id: str,
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    team = await get_team_or_404(team_id, db)
    member = require_team_member(team, current_user)

    link: Optional[TeamDesign] = next((l for l in team.design_links if str(l.design_id) == design_id), None)
    if not link:
        raise HTTPException(status_code=404, detail="Design is not assigned to this team")

    if not member.can_manage and str(link.added_by) != str(current_user.id):
        raise HTTPException(status_code=403, detail="Not allowed to remove this design")

    team.design_links.remove(link)
    design = await db.get(NetworkDesign, design_id)
    if design and str(design.team_id) == str(team.id):
        design.team_id = None
    team.touch(current_user.id)
    await db.commit()

    return await get_team_or_404(team_id, db)

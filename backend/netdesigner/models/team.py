"""Team collaboration models: teams, memberships, shared designs and invitations"""
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, ForeignKey, Boolean, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timedelta
import enum
import secrets

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


INVITATION_TTL = timedelta(days=7)


class TeamRole(str, enum.Enum):
    """Roles within a team"""
    OWNER = "owner"      # Creator; full control
    ADMIN = "admin"      # Manage members and invitations
    MEMBER = "member"


class InvitationRole(str, enum.Enum):
    MEMBER = "member"
    ADMIN = "admin"
    VIEWER = "viewer"


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


MANAGER_ROLES = (TeamRole.OWNER, TeamRole.ADMIN)


def generate_invitation_token() -> str:
    """Random 20-byte hex token"""
    return secrets.token_hex(20)


def default_invitation_expiry() -> datetime:
    return datetime.utcnow() + INVITATION_TTL


class Team(Base):
    """Team of users sharing network designs"""
    __tablename__ = "teams"

    __table_args__ = (
        Index('ix_teams_created_by', 'created_by'),
        Index('ix_teams_is_active', 'is_active'),
        Index('ix_teams_last_modified_at', 'last_modified_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(50), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, default=True)
    avatar = Column(Text, nullable=True)

    last_modified_by = Column(GUID, nullable=True)
    last_modified_at = Column(DateTime, default=datetime.utcnow)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    members = relationship(
        "TeamMember", back_populates="team", cascade="all, delete-orphan", lazy="selectin"
    )
    design_links = relationship(
        "TeamDesign", back_populates="team", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def design_ids(self):
        return [link.design_id for link in self.design_links]

    def get_member(self, user_id: str):
        for member in self.members:
            if str(member.user_id) == str(user_id):
                return member
        return None

    def touch(self, user_id: str) -> None:
        self.last_modified_by = user_id
        self.last_modified_at = datetime.utcnow()

    def __repr__(self):
        return f"<Team {self.name}>"


class TeamMember(Base):
    """Membership of a user in a team"""
    __tablename__ = "team_members"

    __table_args__ = (
        UniqueConstraint('team_id', 'user_id', name='uq_team_members_team_user'),
        Index('ix_team_members_user_id', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    team_id = Column(GUID, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(SQLEnum(TeamRole), default=TeamRole.MEMBER, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    team = relationship("Team", back_populates="members")
    user = relationship("User", lazy="selectin")

    @property
    def can_manage(self) -> bool:
        return self.role in MANAGER_ROLES

    def __repr__(self):
        return f"<TeamMember {self.user_id} ({self.role.value})>"


class TeamDesign(Base):
    """Design assigned to a team"""
    __tablename__ = "team_designs"

    __table_args__ = (
        UniqueConstraint('team_id', 'design_id', name='uq_team_designs_team_design'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    team_id = Column(GUID, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False, index=True)
    added_by = Column(GUID, nullable=True)
    added_at = Column(DateTime, default=datetime.utcnow)

    team = relationship("Team", back_populates="design_links")


class Invitation(Base):
    """Email invitation to join a team"""
    __tablename__ = "invitations"

    __table_args__ = (
        UniqueConstraint('email', 'team_id', name='uq_invitations_email_team'),
        Index('ix_invitations_status', 'status'),
        Index('ix_invitations_invited_by', 'invited_by'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, index=True)
    invited_by = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(GUID, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    role = Column(SQLEnum(InvitationRole), default=InvitationRole.MEMBER, nullable=False)
    token = Column(String(64), unique=True, nullable=False, default=generate_invitation_token)
    status = Column(SQLEnum(InvitationStatus), default=InvitationStatus.PENDING, nullable=False)
    expires_at = Column(DateTime, nullable=False, default=default_invitation_expiry)
    responded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    team = relationship("Team", lazy="selectin")

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at

    @property
    def member_role(self) -> TeamRole:
        """Team role granted on acceptance; viewers join as plain members"""
        if self.role == InvitationRole.ADMIN:
            return TeamRole.ADMIN
        return TeamRole.MEMBER

    def renew(self) -> None:
        self.token = generate_invitation_token()
        self.expires_at = default_invitation_expiry()
        self.status = InvitationStatus.PENDING
        self.responded_at = None

    def __repr__(self):
        return f"<Invitation {self.email} -> {self.team_id} ({self.status.value})>"

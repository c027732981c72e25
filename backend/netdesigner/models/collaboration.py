"""Design sharing and comment threads"""
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, JSON, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class SharePermission(str, enum.Enum):
    VIEW = "view"
    COMMENT = "comment"
    EDIT = "edit"


class DesignShare(Base):
    """Grant of access to a design for a user or a team"""
    __tablename__ = "design_shares"

    __table_args__ = (
        CheckConstraint(
            'shared_with_user_id IS NOT NULL OR shared_with_team_id IS NOT NULL',
            name='ck_design_shares_target'
        ),
        Index('ix_design_shares_design_id', 'design_id'),
        Index('ix_design_shares_user', 'shared_with_user_id'),
        Index('ix_design_shares_team', 'shared_with_team_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False)
    shared_by = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    shared_with_user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    shared_with_team_id = Column(GUID, ForeignKey("teams.id", ondelete="CASCADE"), nullable=True)
    permission = Column(SQLEnum(SharePermission), default=SharePermission.VIEW, nullable=False)
    shared_at = Column(DateTime, default=datetime.utcnow)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<DesignShare {self.design_id} ({self.permission.value})>"


class Comment(Base):
    """Top-level comment on a design"""
    __tablename__ = "comments"

    __table_args__ = (
        Index('ix_comments_design_created', 'design_id', 'created_at'),
        Index('ix_comments_user_id', 'user_id'),
        Index('ix_comments_resolved', 'resolved'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(1000), nullable=False)
    likes = Column(JSON, nullable=False, default=list)
    tagged_users = Column(JSON, nullable=False, default=list)
    resolved = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    replies = relationship(
        "CommentReply",
        back_populates="comment",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CommentReply.created_at",
    )

    def toggle_like(self, user_id: str) -> bool:
        """Add or remove a like; returns True when the comment is now liked"""
        likes = [str(uid) for uid in (self.likes or [])]
        if str(user_id) in likes:
            likes.remove(str(user_id))
            liked = False
        else:
            likes.append(str(user_id))
            liked = True
        self.likes = likes
        return liked

    def __repr__(self):
        return f"<Comment {self.id} on {self.design_id}>"


class CommentReply(Base):
    __tablename__ = "comment_replies"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    comment_id = Column(GUID, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(1000), nullable=False)
    likes = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    comment = relationship("Comment", back_populates="replies")

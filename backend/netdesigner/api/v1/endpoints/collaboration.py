"""
Design collaboration: sharing and comment threads.

Shares and comments notify the people involved through the notification
service.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User
from netdesigner.models.team import Team
from netdesigner.models.collaboration import DesignShare, SharePermission, Comment, CommentReply
from netdesigner.models.notification import NotificationType
from netdesigner.schemas.collaboration import (
    ShareCreate, ShareResponse, CommentCreate, ReplyCreate, CommentResponse,
)
from netdesigner.modules.auth.dependencies import get_current_user, get_accessible_design, get_owned_design
from netdesigner.services.notification_service import notify


router = APIRouter()


def display(user: User) -> str:
    return user.name or user.email


async def get_comment_or_404(comment_id: str, user: User, db: AsyncSession) -> Comment:
    comment = await db.get(Comment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    await get_accessible_design(db, comment.design_id, user)
    return comment


# ==================== Sharing ====================

@router.post("/share", response_model=ShareResponse, status_code=status.HTTP_201_CREATED)
async def share_design(
    share_data: ShareCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Share a design with a user or a team (design owner only)"""
    design = await get_owned_design(db, share_data.design_id, current_user)
    permission = SharePermission(share_data.permission)
    metadata = {"design_id": design.id, "design_name": design.design_name, "permission": permission.value}

    if share_data.user_id:
        recipient = await db.get(User, share_data.user_id)
        if not recipient:
            raise HTTPException(status_code=404, detail="User not found")
        if str(recipient.id) == str(current_user.id):
            raise HTTPException(status_code=400, detail="Cannot share a design with yourself")

        existing = (await db.execute(
            select(DesignShare).where(
                DesignShare.design_id == design.id,
                DesignShare.shared_with_user_id == recipient.id,
            )
        )).scalar_one_or_none()

        if existing:
            previous = existing.permission
            existing.permission = permission
            share = existing
            if previous != permission:
                notify(
                    db,
                    recipient_id=recipient.id,
                    notification_type=NotificationType.ACCESS_LEVEL_CHANGED,
                    title="Access level changed",
                    message=f"Your access to {design.design_name} is now {permission.value}",
                    metadata={
                        "design_id": design.id,
                        "new_permission": permission.value,
                        "previous_permission": previous.value,
                    },
                    sender_id=current_user.id,
                )
        else:
            share = DesignShare(
                design_id=design.id,
                shared_by=current_user.id,
                shared_with_user_id=recipient.id,
                permission=permission,
            )
            db.add(share)
            notify(
                db,
                recipient_id=recipient.id,
                notification_type=NotificationType.DESIGN_SHARED,
                title="Design shared with you",
                message=f"{display(current_user)} shared {design.design_name} with you",
                metadata=metadata,
                sender_id=current_user.id,
            )
    else:
        team = await db.get(Team, share_data.team_id)
        if not team:
            raise HTTPException(status_code=404, detail="Team not found")

        share = DesignShare(
            design_id=design.id,
            shared_by=current_user.id,
            shared_with_team_id=team.id,
            permission=permission,
        )
        db.add(share)
        for member in team.members:
            if str(member.user_id) == str(current_user.id):
                continue
            notify(
                db,
                recipient_id=member.user_id,
                notification_type=NotificationType.TEAM_DESIGN_SHARED,
                title="Design shared with your team",
                message=f"{display(current_user)} shared {design.design_name} with {team.name}",
                metadata={**metadata, "team_id": team.id},
                sender_id=current_user.id,
            )

    await db.commit()
    logger.info(f"[Collaboration] Design {design.id} shared ({permission.value}) by {current_user.id}")
    return share


@router.get("/shares/{design_id}", response_model=List[ShareResponse])
async def list_shares(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, design_id, current_user)
    result = await db.execute(
        select(DesignShare).where(DesignShare.design_id == design.id).order_by(DesignShare.shared_at.desc())
    )
    return result.scalars().all()


@router.delete("/shares/{share_id}")
async def revoke_share(
    share_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    share = await db.get(DesignShare, share_id)
    if not share:
        raise HTTPException(status_code=404, detail="Share not found")
    await get_owned_design(db, share.design_id, current_user)

    await db.delete(share)
    await db.commit()
    logger.info(f"[Collaboration] Share {share_id} revoked by {current_user.id}")
    return {"message": "Share removed"}


# ==================== Comments ====================

@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Comment on a design; notifies the owner and any tagged users"""
    design = await get_accessible_design(db, comment_data.design_id, current_user)

    comment = Comment(
        design_id=design.id,
        user_id=current_user.id,
        content=comment_data.content,
        tagged_users=list(dict.fromkeys(comment_data.tagged_users)),
        likes=[],
        replies=[],
    )
    db.add(comment)
    await db.flush()

    metadata = {"design_id": design.id, "comment_id": comment.id, "design_name": design.design_name}
    if str(design.user_id) != str(current_user.id):
        notify(
            db,
            recipient_id=design.user_id,
            notification_type=NotificationType.COMMENT_ADDED,
            title="New comment",
            message=f"{display(current_user)} commented on {design.design_name}",
            metadata=metadata,
            sender_id=current_user.id,
        )

    for user_id in comment.tagged_users:
        if user_id == str(current_user.id) or not await db.get(User, user_id):
            continue
        notify(
            db,
            recipient_id=user_id,
            notification_type=NotificationType.COMMENT_TAG,
            title="You were mentioned",
            message=f"{display(current_user)} mentioned you on {design.design_name}",
            metadata=metadata,
            sender_id=current_user.id,
        )

    await db.commit()
    logger.info(f"[Collaboration] Comment {comment.id} added to design {design.id}")
    return comment


@router.get("/comments/{design_id}", response_model=List[CommentResponse])
async def list_comments(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, design_id, current_user)
    result = await db.execute(
        select(Comment).where(Comment.design_id == design.id).order_by(Comment.created_at.desc())
    )
    return result.scalars().all()


@router.post("/comments/{comment_id}/reply", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def reply_to_comment(
    comment_id: str,
    reply_data: ReplyCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    comment = await get_comment_or_404(comment_id, current_user, db)

    comment.replies.append(CommentReply(user_id=current_user.id, content=reply_data.content, likes=[]))
    if str(comment.user_id) != str(current_user.id):
        notify(
            db,
            recipient_id=comment.user_id,
            notification_type=NotificationType.COMMENT_REPLY,
            title="New reply",
            message=f"{display(current_user)} replied to your comment",
            metadata={"design_id": comment.design_id, "comment_id": comment.id},
            sender_id=current_user.id,
        )
    await db.commit()

    result = await db.execute(
        select(Comment).where(Comment.id == comment.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.patch("/comments/{comment_id}/like", response_model=CommentResponse)
async def toggle_like(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Like or unlike; only a new like notifies the author"""
    comment = await get_comment_or_404(comment_id, current_user, db)

    liked = comment.toggle_like(current_user.id)
    if liked and str(comment.user_id) != str(current_user.id):
        notify(
            db,
            recipient_id=comment.user_id,
            notification_type=NotificationType.COMMENT_LIKE,
            title="Comment liked",
            message=f"{display(current_user)} liked your comment",
            metadata={"design_id": comment.design_id, "comment_id": comment.id},
            sender_id=current_user.id,
        )
    await db.commit()
    return comment

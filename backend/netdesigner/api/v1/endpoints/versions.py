"""
Design Versions API

Semantic-versioned snapshots of a design. Creating a version diffs the
current design against the latest snapshot; restoring writes a snapshot back.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from datetime import datetime

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger, set_design_id
from netdesigner.models.user import User
from netdesigner.models.design import DesignStatus
from netdesigner.models.version import DesignVersion
from netdesigner.schemas.version import VersionCreate, VersionResponse
from netdesigner.schemas.design import DesignResponse
from netdesigner.modules.auth.dependencies import get_current_user, get_accessible_design, get_owned_design
from netdesigner.services import version_service


router = APIRouter()


async def latest_version(db: AsyncSession, design_id: str):
    result = await db.execute(
        select(DesignVersion)
        .where(DesignVersion.design_id == design_id)
        .order_by(
            DesignVersion.major.desc(),
            DesignVersion.minor.desc(),
            DesignVersion.patch.desc(),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_version_or_404(version_id: str, user: User, db: AsyncSession) -> DesignVersion:
    version = await db.get(DesignVersion, version_id)
    if not version:
        raise HTTPException(status_code=404, detail="Version not found")
    await get_accessible_design(db, version.design_id, user)
    return version


@router.post("/designs/{design_id}/versions", response_model=VersionResponse, status_code=status.HTTP_201_CREATED)
async def create_version(
    design_id: str,
    version_data: VersionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Snapshot the design at the next version number"""
    design = await get_accessible_design(db, design_id, current_user)
    set_design_id(str(design.id))

    latest = await latest_version(db, design.id)
    snapshot = design.to_snapshot()
    changes = version_service.diff(latest.snapshot, snapshot) if latest else []
    if latest and not changes:
        raise HTTPException(status_code=400, detail="No changes since the latest version")

    major, minor, patch = version_service.next_version(latest, version_data.bump)
    version = DesignVersion(
        design_id=design.id,
        version=version_service.format_version((major, minor, patch)),
        major=major,
        minor=minor,
        patch=patch,
        snapshot=snapshot,
        created_by=current_user.id,
        changes=changes,
        notes=version_data.notes,
        tags=version_data.tags,
        parent_version_id=latest.id if latest else None,
    )
    db.add(version)
    await db.commit()

    logger.info(f"[Versions] Design {design.id} saved as {version.version} ({len(changes)} changes)")
    return version


@router.get("/designs/{design_id}/versions", response_model=List[VersionResponse])
async def list_versions(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, design_id, current_user)
    result = await db.execute(
        select(DesignVersion)
        .where(DesignVersion.design_id == design.id)
        .order_by(
            DesignVersion.major.desc(),
            DesignVersion.minor.desc(),
            DesignVersion.patch.desc(),
        )
    )
    return result.scalars().all()


@router.get("/versions/compare")
async def compare_versions(
    v1: str = Query(..., description="Base version ID"),
    v2: str = Query(..., description="Target version ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    base = await get_version_or_404(v1, current_user, db)
    target = await get_version_or_404(v2, current_user, db)
    if base.design_id != target.design_id:
        raise HTTPException(status_code=400, detail="Versions belong to different designs")

    changes = version_service.diff(base.snapshot, target.snapshot)
    return {
        "design_id": base.design_id,
        "from_version": base.version,
        "to_version": target.version,
        "changes": changes,
        "summary": {
            impact: sum(1 for change in changes if change["impact"] == impact)
            for impact in ("high", "medium", "low")
        },
    }


@router.get("/versions/{version_id}", response_model=VersionResponse)
async def get_version(
    version_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await get_version_or_404(version_id, current_user, db)


@router.patch("/versions/{version_id}/publish", response_model=VersionResponse)
async def publish_version(
    version_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    version = await get_version_or_404(version_id, current_user, db)
    if version.is_published:
        raise HTTPException(status_code=400, detail="Version is already published")

    version.is_published = True
    version.published_at = datetime.utcnow()
    await db.commit()
    logger.info(f"[Versions] {version.design_id}@{version.version} published")
    return version


@router.post("/versions/{version_id}/restore", response_model=DesignResponse)
async def restore_version(
    version_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Write the snapshot back onto the design (owner only)"""
    version = await db.get(DesignVersion, version_id)
    if not version:
        raise HTTPException(status_code=404, detail="Version not found")
    design = await get_owned_design(db, version.design_id, current_user)

    snapshot = version.snapshot or {}
    design.design_name = snapshot.get("design_name", design.design_name)
    design.description = snapshot.get("description")
    design.is_existing_network = snapshot.get("is_existing_network", False)
    design.existing_network_details = snapshot.get("existing_network_details")
    design.requirements = snapshot.get("requirements") or {}
    if snapshot.get("design_status"):
        design.design_status = DesignStatus(snapshot["design_status"])
    design.version = (design.version or 1) + 1
    await db.commit()

    logger.info(f"[Versions] Design {design.id} restored to {version.version}")
    return design

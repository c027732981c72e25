"""
Network Design API

CRUD for a user's network designs. Creation is gated by the plan's design
quota; every update bumps the design's revision counter.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger, set_design_id
from netdesigner.models.user import User
from netdesigner.models.design import NetworkDesign, DesignStatus
from netdesigner.models.report import NetworkReport, ReportType, ReportFormat
from netdesigner.schemas.design import DesignCreate, DesignUpdate, DesignResponse, DesignCreateResponse
from netdesigner.schemas.report import ReportResponse
from netdesigner.modules.auth.dependencies import get_current_user, check_design_limit, get_owned_design
from netdesigner.services.report_generator import report_generator


router = APIRouter()


@router.post("/", response_model=DesignCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_design(
    design_data: DesignCreate,
    limit_info: dict = Depends(check_design_limit),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a design; answers with the remaining quota"""
    data = design_data.model_dump()
    design = NetworkDesign(user_id=current_user.id, **data)
    db.add(design)
    await db.commit()

    set_design_id(str(design.id))
    logger.info(f"[Designs] User {current_user.id} created design {design.id}")

    current = limit_info["current"] + 1
    return {
        "design": design,
        "limit_info": {
            "current": current,
            "limit": limit_info["limit"],
            "remaining": max(0, limit_info["limit"] - current),
        },
    }


@router.get("/", response_model=List[DesignResponse])
async def list_designs(
    include_archived: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Own designs, newest first"""
    query = select(NetworkDesign).where(NetworkDesign.user_id == current_user.id)
    if not include_archived:
        query = query.where(NetworkDesign.design_status != DesignStatus.ARCHIVED)
    result = await db.execute(query.order_by(NetworkDesign.created_at.desc()))
    return result.scalars().all()


@router.get("/{design_id}", response_model=DesignResponse)
async def get_design(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await get_owned_design(db, design_id, current_user)


@router.put("/{design_id}", response_model=DesignResponse)
async def update_design(
    design_id: str,
    design_data: DesignUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Partial update; bumps the revision counter"""
    design = await get_owned_design(db, design_id, current_user)

    updates = design_data.model_dump(exclude_unset=True)
    if "design_status" in updates and updates["design_status"] is not None:
        updates["design_status"] = DesignStatus(updates["design_status"])
    for field, value in updates.items():
        setattr(design, field, value)
    if updates.get("is_existing_network") is False:
        design.existing_network_details = None

    design.version = (design.version or 1) + 1
    await db.commit()

    logger.info(f"[Designs] Design {design.id} updated to revision {design.version}")
    return design


@router.put("/{design_id}/archive", response_model=DesignResponse)
async def archive_design(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_owned_design(db, design_id, current_user)
    design.design_status = DesignStatus.ARCHIVED
    await db.commit()
    logger.info(f"[Designs] Design {design.id} archived")
    return design


@router.post("/{design_id}/report", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_design_report(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Full report for the design, stored as JSON"""
    design = await get_owned_design(db, design_id, current_user)
    if design.is_archived:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot generate a report for an archived design"
        )

    content = report_generator.generate_full_report(design, current_user.company)
    report = NetworkReport(
        design_id=design.id,
        user_id=current_user.id,
        report_type=ReportType.FULL,
        title=f"Network Design Report - {design.design_name}",
        content=content,
        format=ReportFormat.JSON,
    )
    db.add(report)
    await db.commit()

    logger.info(f"[Reports] Full report {report.id} generated for design {design.id}")
    return report

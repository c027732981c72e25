"""
Design Optimization API

Creating an optimization queues a background analysis of the design;
results become available once the run has completed.
"""

from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User
from netdesigner.models.optimization import DesignOptimization, OptimizationStatus
from netdesigner.schemas.optimization import OptimizationCreate, OptimizationUpdate, OptimizationResponse
from netdesigner.modules.auth.dependencies import get_current_user, get_owned_design
from netdesigner.services.optimizer import run_optimization, get_optimization


router = APIRouter()


async def get_optimization_or_404(db: AsyncSession, optimization_id: str, user: User) -> DesignOptimization:
    optimization = await get_optimization(db, optimization_id, user.id)
    if not optimization:
        raise HTTPException(status_code=404, detail="Optimization not found")
    return optimization


@router.post("/", response_model=OptimizationResponse, status_code=status.HTTP_201_CREATED)
async def create_optimization(
    optimization_data: OptimizationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Queue an optimization of one of the user's designs"""
    design = await get_owned_design(db, optimization_data.design_id, current_user)

    optimization = DesignOptimization(
        design_id=design.id,
        user_id=current_user.id,
        optimization_type=optimization_data.optimization_type,
        parameters=optimization_data.parameters,
        status=OptimizationStatus.QUEUED,
    )
    db.add(optimization)
    await db.commit()

    background_tasks.add_task(run_optimization, optimization.id)
    logger.info(f"[Optimization] {optimization.id} queued for design {design.id}")
    return optimization


@router.get("/", response_model=List[OptimizationResponse])
async def list_optimizations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(DesignOptimization)
        .where(DesignOptimization.user_id == current_user.id, DesignOptimization.archived == False)
        .order_by(DesignOptimization.created_at.desc())
    )
    return result.scalars().all()


@router.get("/{optimization_id}", response_model=OptimizationResponse)
async def get_optimization_detail(
    optimization_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await get_optimization_or_404(db, optimization_id, current_user)


@router.put("/{optimization_id}", response_model=OptimizationResponse)
async def update_optimization(
    optimization_id: str,
    update_data: OptimizationUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    optimization = await get_optimization_or_404(db, optimization_id, current_user)
    if optimization.is_locked:
        raise HTTPException(
            status_code=400,
            detail="Optimization cannot be modified while running or after completion"
        )

    for field, value in update_data.model_dump(exclude_unset=True).items():
        setattr(optimization, field, value)
    await db.commit()
    return optimization


@router.get("/{optimization_id}/results")
async def get_optimization_results(
    optimization_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    optimization = await get_optimization_or_404(db, optimization_id, current_user)
    if optimization.status != OptimizationStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Optimization has not completed yet")

    return {
        "improvements": optimization.improvements,
        "metrics": optimization.metrics,
        "recommendations": optimization.recommendations,
        "report_url": optimization.report_url,
    }


@router.put("/{optimization_id}/archive", response_model=OptimizationResponse)
async def archive_optimization(
    optimization_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    optimization = await get_optimization_or_404(db, optimization_id, current_user)
    optimization.archived = True
    await db.commit()

    logger.info(f"[Optimization] {optimization.id} archived")
    return optimization


@router.post("/{optimization_id}/clone", response_model=OptimizationResponse, status_code=status.HTTP_201_CREATED)
async def clone_optimization(
    optimization_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Re-run an optimization with the same type and parameters"""
    original = await get_optimization_or_404(db, optimization_id, current_user)

    clone = DesignOptimization(
        design_id=original.design_id,
        user_id=current_user.id,
        optimization_type=original.optimization_type,
        parameters=dict(original.parameters or {}),
        status=OptimizationStatus.QUEUED,
        cloned_from=original.id,
    )
    db.add(clone)
    await db.commit()

    background_tasks.add_task(run_optimization, clone.id)
    logger.info(f"[Optimization] {original.id} cloned as {clone.id}")
    return clone

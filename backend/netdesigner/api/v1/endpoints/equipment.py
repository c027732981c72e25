"""
Equipment Catalogue API

Public catalogue browsing, user-owned equipment, admin-maintained system
equipment, design assignment and per-design recommendations.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Form, File, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
import json

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User, UserRole
from netdesigner.models.design import NetworkDesign
from netdesigner.models.equipment import Equipment, EquipmentCategory
from netdesigner.schemas.equipment import (
    EquipmentCreate, EquipmentUpdate, EquipmentAssignment, EquipmentResponse,
    EquipmentPage, RecommendationResponse,
)
from netdesigner.modules.auth.dependencies import (
    get_current_user, get_current_admin, get_owned_design, get_accessible_design, require_subscription,
)
from netdesigner.services import equipment_recommender
from netdesigner.services.storage_service import storage_service
from netdesigner.utils.file_upload import read_upload, unique_filename, upload_folder
from netdesigner.utils.pagination import paginate


router = APIRouter()


# ==================== Helper Functions ====================

async def get_equipment_or_404(equipment_id: str, db: AsyncSession) -> Equipment:
    equipment = await db.get(Equipment, equipment_id)
    if not equipment:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return equipment


def require_equipment_editor(equipment: Equipment, user: User) -> None:
    """Creator or admin; system equipment is admin-only"""
    if user.role == UserRole.ADMIN:
        return
    if equipment.is_system_owned or str(equipment.created_by) != str(user.id):
        raise HTTPException(status_code=403, detail="Not authorized to modify this equipment")


def parse_equipment_form(data: str) -> EquipmentCreate:
    try:
        return EquipmentCreate.model_validate(json.loads(data))
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Equipment data must be valid JSON")
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        )


async def store_image(image: Optional[UploadFile]) -> Optional[str]:
    if image is None or not image.filename:
        return None
    content = await read_upload(image, images_only=True)
    stored = await storage_service.save(
        content, upload_folder(image.content_type), unique_filename(image.filename), image.content_type
    )
    return stored["url"]


async def create_equipment(
    equipment_data: EquipmentCreate,
    image: Optional[UploadFile],
    user: User,
    db: AsyncSession,
    system: bool = False,
) -> Equipment:
    values = equipment_data.model_dump(exclude_none=True)
    image_url = await store_image(image)
    if image_url:
        values["image_url"] = image_url

    equipment = Equipment(
        **values,
        created_by=user.id,
        is_system_owned=system,
        configurations=[],
        designs=[],
    )
    if system:
        equipment.is_public = True
    db.add(equipment)
    await db.commit()

    logger.info(f"[Equipment] {'System' if system else 'User'} equipment {equipment.display_name} created by {user.id}")
    return equipment


# ==================== Catalogue ====================

@router.get("/", response_model=EquipmentPage)
async def list_equipment(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[EquipmentCategory] = None,
    manufacturer: Optional[str] = None,
    port_speed: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """Public active catalogue, sorted by manufacturer then model"""
    query = select(Equipment).where(Equipment.is_public == True, Equipment.is_active == True)
    if category:
        query = query.where(Equipment.category == category)
    if manufacturer:
        query = query.where(Equipment.manufacturer.ilike(f"%{manufacturer}%"))
    query = query.order_by(Equipment.manufacturer, Equipment.model)

    if port_speed:
        # Port speed lives inside the specs document
        result = await db.execute(query)
        items = [item for item in result.scalars().all() if item.port_speed == port_speed]
        total = len(items)
        data = items[(page - 1) * limit: page * limit]
        return {
            "count": len(data),
            "total": total,
            "page": page,
            "pages": (total + limit - 1) // limit if total else 0,
            "data": data,
        }

    return await paginate(db, query, page=page, limit=limit)


@router.get("/category/{category}", response_model=List[EquipmentResponse])
async def list_by_category(
    category: EquipmentCategory,
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Equipment)
        .where(Equipment.category == category, Equipment.is_public == True, Equipment.is_active == True)
        .order_by(Equipment.manufacturer, Equipment.model)
    )
    return result.scalars().all()


@router.get("/similar/{equipment_id}", response_model=List[EquipmentResponse])
async def list_similar(
    equipment_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Same category and manufacturer, excluding the item itself"""
    equipment = await get_equipment_or_404(equipment_id, db)
    result = await db.execute(
        select(Equipment)
        .where(
            Equipment.category == equipment.category,
            Equipment.manufacturer == equipment.manufacturer,
            Equipment.id != equipment.id,
            Equipment.is_public == True,
            Equipment.is_active == True,
        )
        .order_by(Equipment.model)
        .limit(5)
    )
    return result.scalars().all()


@router.get("/user/", response_model=List[EquipmentResponse])
async def list_own_equipment(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Equipment)
        .where(Equipment.created_by == current_user.id)
        .order_by(Equipment.created_at.desc())
    )
    return result.scalars().all()


@router.get("/recommendations/{design_id}", response_model=RecommendationResponse)
async def get_recommendations(
    design_id: str,
    current_user: User = Depends(require_subscription("equipment_recommendations")),
    db: AsyncSession = Depends(get_db)
):
    """Size and pick equipment for the design; the result is stored"""
    design = await get_accessible_design(db, design_id, current_user)
    recommendation = await equipment_recommender.recommend_for_design(db, design)
    entries = await equipment_recommender.expand_recommendation(db, recommendation)
    await db.commit()
    return {
        "design_id": design.id,
        "generated_at": recommendation.generated_at,
        "recommendations": entries,
    }


# ==================== Design assignment ====================

@router.post("/assign-to-design", response_model=EquipmentResponse)
async def assign_to_design(
    assignment: EquipmentAssignment,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_owned_design(db, assignment.design_id, current_user)
    equipment = await get_equipment_or_404(assignment.equipment_id, db)
    if not equipment.is_public and str(equipment.created_by) != str(current_user.id):
        raise HTTPException(status_code=403, detail="Not authorized to use this equipment")

    if design.id in equipment.design_ids:
        raise HTTPException(status_code=400, detail="Equipment is already assigned to this design")

    equipment.designs.append(design)
    await db.commit()
    logger.info(f"[Equipment] {equipment.id} assigned to design {design.id}")
    return equipment


@router.delete("/remove-from-design", response_model=EquipmentResponse)
async def remove_from_design(
    assignment: EquipmentAssignment,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_owned_design(db, assignment.design_id, current_user)
    equipment = await get_equipment_or_404(assignment.equipment_id, db)

    linked = next((d for d in equipment.designs if d.id == design.id), None)
    if not linked:
        raise HTTPException(status_code=404, detail="Equipment is not assigned to this design")

    equipment.designs.remove(linked)
    await db.commit()
    return equipment


@router.get("/design/{design_id}", response_model=List[EquipmentResponse])
async def list_design_equipment(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, design_id, current_user)
    result = await db.execute(
        select(Equipment)
        .where(Equipment.designs.any(NetworkDesign.id == design.id))
        .order_by(Equipment.category, Equipment.manufacturer)
    )
    return result.scalars().all()


# ==================== Create / Update / Delete ====================

@router.post("/", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_user_equipment(
    data: str = Form(..., description="Equipment fields as JSON"),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Multipart: `data` (JSON) plus an optional `image`"""
    return await create_equipment(parse_equipment_form(data), image, current_user, db)


@router.post("/system", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_system_equipment(
    data: str = Form(..., description="Equipment fields as JSON"),
    image: Optional[UploadFile] = File(None),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """System-owned public equipment (admin only)"""
    return await create_equipment(parse_equipment_form(data), image, admin, db, system=True)


@router.get("/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(
    equipment_id: str,
    db: AsyncSession = Depends(get_db)
):
    equipment = await get_equipment_or_404(equipment_id, db)
    if not equipment.is_public:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return equipment


@router.put("/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: str,
    equipment_data: EquipmentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    equipment = await get_equipment_or_404(equipment_id, db)
    require_equipment_editor(equipment, current_user)

    for field, value in equipment_data.model_dump(exclude_unset=True).items():
        setattr(equipment, field, value)
    await db.commit()

    logger.info(f"[Equipment] {equipment.id} updated by {current_user.id}")
    return equipment


@router.delete("/{equipment_id}")
async def delete_equipment(
    equipment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete the equipment and its stored image"""
    equipment = await get_equipment_or_404(equipment_id, db)
    require_equipment_editor(equipment, current_user)

    image_key = storage_service.key_from_url(equipment.image_url)
    await db.delete(equipment)
    await db.commit()

    if image_key:
        await storage_service.delete(image_key)

    logger.info(f"[Equipment] {equipment_id} deleted by {current_user.id}")
    return {"message": "Equipment deleted successfully"}

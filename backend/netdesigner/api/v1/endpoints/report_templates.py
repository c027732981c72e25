"""
Report Templates API

Reusable report layouts made of Jinja2 sections. System templates are
maintained by admins and cannot be deleted.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
from datetime import datetime

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User, UserRole
from netdesigner.models.report import NetworkReport, ReportTemplate, TemplateCategory
from netdesigner.schemas.report import (
    ReportTemplateCreate, ReportTemplateUpdate, ReportTemplateResponse, TemplateClone, TemplateSection,
)
from netdesigner.modules.auth.dependencies import get_current_user


router = APIRouter()

COMPLIANCE_SECTION_KEY = "compliance_summary"


# ==================== Helper Functions ====================

async def get_report_template_or_404(template_id: str, db: AsyncSession) -> ReportTemplate:
    template = await db.get(ReportTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


def require_template_editor(template: ReportTemplate, user: User) -> None:
    if user.role == UserRole.ADMIN:
        return
    if template.is_system_template:
        raise HTTPException(status_code=403, detail="System templates can only be modified by admins")
    if str(template.created_by) != str(user.id):
        raise HTTPException(status_code=403, detail="Not authorized to modify this template")


async def ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(ReportTemplate.id).where(ReportTemplate.name == name)
    if exclude_id:
        query = query.where(ReportTemplate.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail="Template with this name already exists")


def ordered(sections: List[TemplateSection]) -> List[dict]:
    """Section dicts; a missing order falls back to the list position"""
    return [
        {**section.model_dump(), "order": section.order if section.order is not None else index}
        for index, section in enumerate(sections)
    ]


def check_compliance_sections(category: str, sections: List[dict]) -> None:
    if category == TemplateCategory.COMPLIANCE.value and not any(
        s.get("key") == COMPLIANCE_SECTION_KEY for s in sections
    ):
        raise HTTPException(
            status_code=400,
            detail="Compliance templates must include a compliance_summary section"
        )


def bump_minor(version: str) -> str:
    major, minor, patch = (int(part) for part in version.split("."))
    return f"{major}.{minor + 1}.{patch}"


# ==================== Endpoints ====================

@router.get("/", response_model=List[ReportTemplateResponse])
async def list_report_templates(
    category: Optional[TemplateCategory] = None,
    search: Optional[str] = None,
    active_only: bool = True,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(ReportTemplate)
    if category:
        query = query.where(ReportTemplate.category == category)
    if search:
        query = query.where(func.lower(ReportTemplate.name).contains(search.lower()))
    if active_only:
        query = query.where(ReportTemplate.is_active == True)

    result = await db.execute(query.order_by(ReportTemplate.created_at.desc()))
    return result.scalars().all()


@router.get("/{template_id}", response_model=ReportTemplateResponse)
async def get_report_template(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await get_report_template_or_404(template_id, db)


@router.post("/", response_model=ReportTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_report_template(
    template_data: ReportTemplateCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    sections = ordered(template_data.sections)
    check_compliance_sections(template_data.category, sections)
    await ensure_unique_name(db, template_data.name)

    template = ReportTemplate(
        name=template_data.name,
        description=template_data.description,
        category=template_data.category,
        sections=sections,
        supported_formats=list(template_data.supported_formats),
        is_active=template_data.is_active,
        created_by=current_user.id,
        template_metadata={"author": current_user.name, "company": current_user.company or "NetDesigner"},
    )
    db.add(template)
    await db.commit()

    logger.info(f"[ReportTemplates] Template '{template.name}' created by {current_user.id}")
    return template


@router.put("/{template_id}", response_model=ReportTemplateResponse)
async def update_report_template(
    template_id: str,
    template_data: ReportTemplateUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = await get_report_template_or_404(template_id, db)
    require_template_editor(template, current_user)

    updates = template_data.model_dump(exclude_unset=True, exclude={"sections"})
    if template_data.sections is not None:
        updates["sections"] = ordered(template_data.sections)

    category = updates.get("category") or template.category.value
    check_compliance_sections(category, updates.get("sections", template.sections or []))
    if updates.get("name") and updates["name"] != template.name:
        await ensure_unique_name(db, updates["name"], exclude_id=template.id)

    for field, value in updates.items():
        setattr(template, field, value)
    await db.commit()

    logger.info(f"[ReportTemplates] Template {template.id} updated by {current_user.id}")
    return template


@router.patch("/{template_id}/status")
async def toggle_report_template_status(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Flip is_active"""
    template = await get_report_template_or_404(template_id, db)
    require_template_editor(template, current_user)

    template.is_active = not template.is_active
    await db.commit()

    state = "activated" if template.is_active else "deactivated"
    logger.info(f"[ReportTemplates] Template {template.id} {state}")
    return {"message": f"Template {state}", "is_active": template.is_active}


@router.delete("/{template_id}")
async def delete_report_template(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = await get_report_template_or_404(template_id, db)
    if template.is_system_template:
        raise HTTPException(status_code=403, detail="System templates cannot be deleted")
    require_template_editor(template, current_user)

    report_count = (await db.execute(
        select(func.count(NetworkReport.id)).where(NetworkReport.template_id == template.id)
    )).scalar()
    if report_count:
        raise HTTPException(status_code=400, detail="Template cannot be deleted as it has associated reports")

    await db.delete(template)
    await db.commit()

    logger.info(f"[ReportTemplates] Template {template_id} deleted by {current_user.id}")
    return {"message": "Template deleted successfully"}


@router.post("/{template_id}/clone", response_model=ReportTemplateResponse, status_code=status.HTTP_201_CREATED)
async def clone_report_template(
    template_id: str,
    clone_data: TemplateClone,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Copy under a new name as a user template, minor version bumped"""
    if not clone_data.name:
        raise HTTPException(status_code=400, detail="New template name is required")

    original = await get_report_template_or_404(template_id, db)
    await ensure_unique_name(db, clone_data.name)

    clone = ReportTemplate(
        name=clone_data.name,
        description=original.description,
        category=original.category,
        sections=[dict(section) for section in original.sections or []],
        supported_formats=list(original.supported_formats or []),
        is_active=True,
        is_system_template=False,
        version=bump_minor(original.version),
        created_by=current_user.id,
        template_metadata={
            **(original.template_metadata or {}),
            "cloned_from": original.id,
            "author": current_user.name,
            "cloned_at": datetime.utcnow().isoformat(),
        },
    )
    db.add(clone)
    await db.commit()

    logger.info(f"[ReportTemplates] Template {original.id} cloned as {clone.id}")
    return clone

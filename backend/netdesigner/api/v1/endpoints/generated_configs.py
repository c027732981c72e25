"""
Generated Configurations API

Rendered device configs belong to the user who generated them.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import datetime

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User
from netdesigner.models.design import NetworkDesign
from netdesigner.models.configuration import GeneratedConfig, ConfigurationTemplate
from netdesigner.schemas.configuration import GeneratedConfigResponse, RegenerateRequest, ApplyConfigRequest
from netdesigner.modules.auth.dependencies import get_current_user
from netdesigner.services import config_templates
from netdesigner.services.pdf_generator import pdf_generator


router = APIRouter()


async def get_owned_config(config_id: str, user: User, db: AsyncSession) -> GeneratedConfig:
    config = await db.get(GeneratedConfig, config_id)
    if not config:
        raise HTTPException(status_code=404, detail="Configuration not found")
    if str(config.generated_by) != str(user.id):
        raise HTTPException(status_code=403, detail="Not authorized to access this configuration")
    return config


@router.get("/", response_model=List[GeneratedConfigResponse])
async def list_generated_configs(
    design_id: Optional[str] = None,
    equipment_id: Optional[str] = None,
    template_id: Optional[str] = None,
    config_type: Optional[str] = None,
    applied: Optional[bool] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(GeneratedConfig).where(GeneratedConfig.generated_by == current_user.id)
    if design_id:
        query = query.where(GeneratedConfig.design_id == design_id)
    if equipment_id:
        query = query.where(GeneratedConfig.equipment_id == equipment_id)
    if template_id:
        query = query.where(GeneratedConfig.template_id == template_id)
    if config_type:
        query = query.where(GeneratedConfig.config_type == config_type)
    if applied is not None:
        query = query.where(GeneratedConfig.is_applied == applied)

    result = await db.execute(query.order_by(GeneratedConfig.created_at.desc()))
    return result.scalars().all()


@router.get("/{config_id}", response_model=GeneratedConfigResponse)
async def get_generated_config(
    config_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await get_owned_config(config_id, current_user, db)


@router.patch("/{config_id}/apply", response_model=GeneratedConfigResponse)
async def apply_generated_config(
    config_id: str,
    apply_data: Optional[ApplyConfigRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a configuration as applied to its device"""
    config = await get_owned_config(config_id, current_user, db)
    config.is_applied = True
    config.applied_at = datetime.utcnow()
    if apply_data and apply_data.notes is not None:
        config.notes = apply_data.notes
    await db.commit()

    logger.info(f"[Configurations] Generated config {config.id} applied by {current_user.id}")
    return config


@router.get("/{config_id}/download")
async def download_generated_config(
    config_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """PDF listing of the configuration"""
    config = await get_owned_config(config_id, current_user, db)
    template = await db.get(ConfigurationTemplate, config.template_id) if config.template_id else None
    design = await db.get(NetworkDesign, config.design_id)

    details = {
        "design": design.design_name if design else None,
        "template": f"{template.name} v{template.version}" if template else None,
        "config_type": config.config_type,
        "generated_by": current_user.name,
        "generated_at": config.generated_at.strftime("%Y-%m-%d %H:%M") if config.generated_at else None,
    }
    pdf = pdf_generator.generate_config_pdf("Device Configuration", config.configuration, details)

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="config-{config.id}.pdf"'},
    )


@router.post("/{config_id}/regenerate", response_model=GeneratedConfigResponse, status_code=status.HTTP_201_CREATED)
async def regenerate_config(
    config_id: str,
    regenerate_data: RegenerateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Render the source template again as a new record.

    Without new values the previous ones are reused.
    """
    config = await get_owned_config(config_id, current_user, db)
    template = await db.get(ConfigurationTemplate, config.template_id) if config.template_id else None
    if not template:
        raise HTTPException(status_code=404, detail="Source template no longer exists")

    values = regenerate_data.variable_values or config.variable_values or {}
    regenerated = GeneratedConfig(
        design_id=config.design_id,
        equipment_id=config.equipment_id,
        template_id=config.template_id,
        config_type=config.config_type,
        configuration=config_templates.render_template(template.template, template.variables, values),
        variable_values=values,
        generated_by=current_user.id,
        parent_config_id=config.id,
    )
    db.add(regenerated)
    await db.commit()

    logger.info(f"[Configurations] Config {config.id} regenerated as {regenerated.id}")
    return regenerated


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_generated_config(
    config_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    config = await get_owned_config(config_id, current_user, db)
    if config.is_applied:
        raise HTTPException(status_code=400, detail="Applied configurations cannot be deleted")

    await db.delete(config)
    await db.commit()
    logger.info(f"[Configurations] Generated config {config_id} deleted")

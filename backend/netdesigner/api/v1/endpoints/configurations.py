"""
Configuration Templates API

Vendor configuration templates with {{variable}} placeholders, rendering
into generated configs, and deployment tracking per device.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Form, File, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
from datetime import datetime
import json

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger
from netdesigner.models.user import User, UserRole
from netdesigner.models.equipment import Equipment, DeviceConfigStatus
from netdesigner.models.configuration import (
    ConfigurationTemplate, ConfigDeployment, GeneratedConfig, ConfigType, ConfigSourceType,
)
from netdesigner.schemas.configuration import (
    TemplateCreate, TemplateUpdate, TemplateResponse, GenerateConfigRequest, DeployRequest,
    DeploymentStatusUpdate, DeploymentResponse, GeneratedConfigResponse,
)
from netdesigner.modules.auth.dependencies import get_current_user, get_accessible_design, require_subscription
from netdesigner.services import config_templates
from netdesigner.services.storage_service import storage_service
from netdesigner.utils.file_upload import attachment_headers, read_upload, unique_filename


router = APIRouter()

OPEN_DEPLOYMENT_STATUSES = (DeviceConfigStatus.PENDING, DeviceConfigStatus.ACTIVE)


# ==================== Helper Functions ====================

async def get_template_or_404(template_id: str, db: AsyncSession) -> ConfigurationTemplate:
    template = await db.get(ConfigurationTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Configuration template not found")
    return template


def require_template_owner(template: ConfigurationTemplate, user: User) -> None:
    if user.role != UserRole.ADMIN and str(template.created_by) != str(user.id):
        raise HTTPException(status_code=403, detail="Not authorized to modify this template")


async def ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(ConfigurationTemplate.id).where(ConfigurationTemplate.name == name)
    if exclude_id:
        query = query.where(ConfigurationTemplate.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail="A template with this name already exists")


async def save_template(
    template_data: TemplateCreate,
    user: User,
    db: AsyncSession,
    config_file: Optional[dict] = None,
) -> ConfigurationTemplate:
    if not template_data.template:
        raise HTTPException(status_code=400, detail="Template content is required")

    variables = [v.model_dump() for v in template_data.variables]
    config_templates.validate_template_variables(template_data.template, variables)
    await ensure_unique_name(db, template_data.name)

    values = template_data.model_dump(exclude={"variables"})
    template = ConfigurationTemplate(
        **values,
        variables=variables,
        config_file=config_file,
        created_by=user.id,
        last_updated_by=user.id,
        deployments=[],
    )
    db.add(template)
    await db.commit()

    logger.info(f"[Configurations] Template '{template.name}' created by {user.id}")
    return template


def set_device_configuration(equipment: Equipment, deployment: ConfigDeployment) -> None:
    """Mirror a deployment onto the device's configuration history"""
    entries = [dict(entry) for entry in equipment.configurations or []]
    entry = next((e for e in entries if e.get("deployment_id") == deployment.id), None)
    if entry is None:
        entry = {
            "deployment_id": deployment.id,
            "template_id": deployment.template_id,
            "deployed_by": deployment.deployed_by,
            "deployed_at": deployment.deployed_at.isoformat(),
            "is_current": False,
        }
        entries.append(entry)
    entry["status"] = deployment.status.value

    if deployment.status == DeviceConfigStatus.ACTIVE:
        for other in entries:
            other["is_current"] = other is entry
    elif entry.get("is_current"):
        entry["is_current"] = False

    equipment.configurations = entries


# ==================== Templates ====================

@router.post("/", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: TemplateCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a template; every placeholder must be a declared variable"""
    return await save_template(template_data, current_user, db)


@router.post("/upload", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def upload_template(
    data: str = Form(..., description="Template fields as JSON"),
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """File-based template: the uploaded config becomes the template text"""
    try:
        template_data = TemplateCreate.model_validate({**json.loads(data), "config_source_type": "file"})
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Template data must be valid JSON")
    except PydanticValidationError as e:
        raise HTTPException(status_code=400, detail=[err["msg"] for err in e.errors()])

    content = await read_upload(file)
    try:
        template_data.template = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Configuration files must be UTF-8 text")

    stored = await storage_service.save(content, "configs", unique_filename(file.filename), file.content_type)
    config_file = {
        "url": stored["url"],
        "key": stored["key"],
        "original_name": file.filename,
        "size": stored["size"],
        "mime_type": file.content_type,
    }
    return await save_template(template_data, current_user, db, config_file=config_file)


@router.get("/", response_model=List[TemplateResponse])
async def list_templates(
    equipment_type: Optional[str] = None,
    vendor: Optional[str] = None,
    config_type: Optional[ConfigType] = None,
    is_active: Optional[bool] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(ConfigurationTemplate)
    if equipment_type:
        query = query.where(ConfigurationTemplate.equipment_type == equipment_type)
    if vendor:
        query = query.where(func.lower(ConfigurationTemplate.vendor) == vendor.lower())
    if config_type:
        query = query.where(ConfigurationTemplate.config_type == config_type)
    if is_active is not None:
        query = query.where(ConfigurationTemplate.is_active == is_active)

    result = await db.execute(query.order_by(ConfigurationTemplate.created_at.desc()))
    return result.scalars().all()


# ==================== Generation ====================

@router.post("/generate", response_model=GeneratedConfigResponse, status_code=status.HTTP_201_CREATED)
async def generate_config(
    request_data: GenerateConfigRequest,
    current_user: User = Depends(require_subscription("config_templates")),
    db: AsyncSession = Depends(get_db)
):
    """Validate the variable values, render the template and store the result"""
    template = await get_template_or_404(request_data.template_id, db)
    if not template.is_active:
        raise HTTPException(status_code=400, detail="Template is not active")

    design = await get_accessible_design(db, request_data.design_id, current_user)

    if request_data.equipment_id:
        equipment = await db.get(Equipment, request_data.equipment_id)
        if not equipment:
            raise HTTPException(status_code=404, detail="Equipment not found")

    configuration = config_templates.render_checked(
        template.template, template.variables, request_data.variable_values
    )

    generated = GeneratedConfig(
        design_id=design.id,
        equipment_id=request_data.equipment_id,
        template_id=template.id,
        config_type=template.config_type.value,
        configuration=configuration,
        variable_values=request_data.variable_values,
        generated_by=current_user.id,
        notes=request_data.notes,
    )
    db.add(generated)
    await db.commit()

    logger.info(f"[Configurations] Config {generated.id} generated from '{template.name}' for design {design.id}")
    return generated


@router.get("/generated", response_model=List[GeneratedConfigResponse])
async def list_generated(
    design_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(GeneratedConfig).where(GeneratedConfig.generated_by == current_user.id)
    if design_id:
        query = query.where(GeneratedConfig.design_id == design_id)
    result = await db.execute(query.order_by(GeneratedConfig.generated_at.desc()))
    return result.scalars().all()


# ==================== Devices ====================

@router.get("/devices/{equipment_id}/deployments", response_model=List[DeploymentResponse])
async def list_device_deployments(
    equipment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(ConfigDeployment)
        .where(ConfigDeployment.equipment_id == equipment_id)
        .order_by(ConfigDeployment.deployed_at.desc())
    )
    return result.scalars().all()


@router.get("/compatible/{equipment_id}", response_model=List[TemplateResponse])
async def list_compatible_templates(
    equipment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active templates for the device's category and manufacturer"""
    equipment = await db.get(Equipment, equipment_id)
    if not equipment:
        raise HTTPException(status_code=404, detail="Equipment not found")

    result = await db.execute(
        select(ConfigurationTemplate)
        .where(
            ConfigurationTemplate.is_active == True,
            ConfigurationTemplate.equipment_type == equipment.category.value,
            func.lower(ConfigurationTemplate.vendor) == equipment.manufacturer.lower(),
        )
        .order_by(ConfigurationTemplate.name)
    )
    return result.scalars().all()


# ==================== Single template ====================

@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await get_template_or_404(template_id, db)


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    template_data: TemplateUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = await get_template_or_404(template_id, db)
    require_template_owner(template, current_user)

    updates = template_data.model_dump(exclude_unset=True)
    if "variables" in updates:
        updates["variables"] = [v.model_dump() for v in template_data.variables or []]
    if updates.get("name") and updates["name"] != template.name:
        await ensure_unique_name(db, updates["name"], exclude_id=template.id)

    config_templates.validate_template_variables(
        updates.get("template", template.template),
        updates.get("variables", template.variables),
    )

    for field, value in updates.items():
        setattr(template, field, value)
    template.last_updated_by = current_user.id
    await db.commit()

    logger.info(f"[Configurations] Template {template.id} updated by {current_user.id}")
    return template


@router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Blocked while any deployment is pending or active"""
    template = await get_template_or_404(template_id, db)
    require_template_owner(template, current_user)

    if any(d.status in OPEN_DEPLOYMENT_STATUSES for d in template.deployments):
        raise HTTPException(status_code=400, detail="Cannot delete a template with active deployments")

    file_key = (template.config_file or {}).get("key")
    await db.delete(template)
    await db.commit()
    if file_key:
        await storage_service.delete(file_key)

    logger.info(f"[Configurations] Template {template_id} deleted by {current_user.id}")
    return {"message": "Template deleted successfully"}


@router.post("/{template_id}/deploy", response_model=DeploymentResponse, status_code=status.HTTP_201_CREATED)
async def deploy_template(
    template_id: str,
    deploy_data: DeployRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a pending deployment onto a compatible device"""
    template = await get_template_or_404(template_id, db)
    equipment = await db.get(Equipment, deploy_data.equipment_id)
    if not equipment:
        raise HTTPException(status_code=404, detail="Equipment not found")
    if not template.is_compatible_with(equipment):
        raise HTTPException(status_code=400, detail="Template is not compatible with this equipment")

    rendered = config_templates.render_checked(template.template, template.variables, deploy_data.variable_values)

    deployment = ConfigDeployment(
        equipment_id=equipment.id,
        deployed_by=current_user.id,
        deployed_at=datetime.utcnow(),
        status=DeviceConfigStatus.PENDING,
        variable_values=deploy_data.variable_values,
        rendered_config=rendered,
        notes=deploy_data.notes,
    )
    template.deployments.append(deployment)
    await db.flush()
    set_device_configuration(equipment, deployment)
    await db.commit()

    logger.info(f"[Configurations] Template {template.id} deploying to {equipment.id} ({deployment.id})")
    return deployment


@router.patch("/{template_id}/deployments/{deployment_id}", response_model=DeploymentResponse)
async def update_deployment_status(
    template_id: str,
    deployment_id: str,
    status_data: DeploymentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Move a deployment along; active marks it the device's current config"""
    template = await get_template_or_404(template_id, db)
    deployment = next((d for d in template.deployments if str(d.id) == deployment_id), None)
    if not deployment:
        raise HTTPException(status_code=404, detail="Deployment not found")

    deployment.status = DeviceConfigStatus(status_data.status)
    if status_data.notes is not None:
        deployment.notes = status_data.notes

    equipment = await db.get(Equipment, deployment.equipment_id)
    if equipment:
        set_device_configuration(equipment, deployment)
    await db.commit()

    logger.info(f"[Configurations] Deployment {deployment.id} is now {deployment.status.value}")
    return deployment


@router.get("/{template_id}/download")
async def download_template(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Uploaded file for file-based templates, otherwise the template text"""
    template = await get_template_or_404(template_id, db)

    filename = f"{template.name.replace(' ', '_')}.cfg"
    content = (template.template or "").encode("utf-8")
    if template.config_source_type == ConfigSourceType.FILE and template.config_file:
        stored = await storage_service.read(template.config_file.get("key"))
        if stored is not None:
            content = stored
            filename = template.config_file.get("original_name") or filename

    return Response(
        content=content,
        media_type="text/plain",
        headers=attachment_headers(filename, fallback=f"template-{template.id}.cfg"),
    )

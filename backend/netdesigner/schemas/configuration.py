"""Pydantic schemas for configuration templates and generated configs"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime
import re


ConfigTypeLiteral = Literal["basic", "vlan", "routing", "security", "qos", "ha"]
DeploymentStatus = Literal["pending", "active", "failed", "rolled-back"]

VARIABLE_NAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+$")


class TemplateVariable(BaseModel):
    name: str
    description: str = Field(..., min_length=1)
    default_value: Optional[str] = None
    required: bool = False
    validation_regex: Optional[str] = None
    example: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not VARIABLE_NAME_RE.match(v):
            raise ValueError("Variable names can only contain alphanumeric characters and underscores")
        return v

    @field_validator("validation_regex")
    @classmethod
    def validate_regex(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid validation regex: {e}")
        return v


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    equipment_type: Literal["switch", "router", "firewall", "ap", "server"]
    vendor: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    config_type: ConfigTypeLiteral
    template: Optional[str] = None
    variables: List[TemplateVariable] = []
    version: str = "1.0.0"
    config_source_type: Literal["template", "file"] = "template"
    is_active: bool = True

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if not SEMVER_RE.match(v):
            raise ValueError("Version must be in semantic version format")
        return v


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    vendor: Optional[str] = None
    model: Optional[str] = None
    config_type: Optional[ConfigTypeLiteral] = None
    template: Optional[str] = None
    variables: Optional[List[TemplateVariable]] = None
    version: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not SEMVER_RE.match(v):
            raise ValueError("Version must be in semantic version format")
        return v


class GenerateConfigRequest(BaseModel):
    template_id: str
    equipment_id: Optional[str] = None
    design_id: str
    variable_values: Dict[str, Any] = {}
    notes: Optional[str] = None


class DeployRequest(BaseModel):
    equipment_id: str
    variable_values: Dict[str, Any] = {}
    notes: Optional[str] = None


class DeploymentStatusUpdate(BaseModel):
    status: DeploymentStatus
    notes: Optional[str] = None


class RegenerateRequest(BaseModel):
    variable_values: Dict[str, Any] = {}


class DeploymentResponse(BaseModel):
    id: str
    template_id: str
    equipment_id: str
    deployed_by: Optional[str] = None
    deployed_at: datetime
    status: str
    variable_values: Dict[str, Any] = {}
    rendered_config: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    equipment_type: str
    vendor: str
    model: str
    config_type: str
    template: Optional[str] = None
    variables: List[Dict[str, Any]] = []
    version: str
    config_source_type: str
    config_file: Optional[Dict[str, Any]] = None
    created_by: Optional[str] = None
    is_active: bool
    deployments: List[DeploymentResponse] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GeneratedConfigResponse(BaseModel):
    id: str
    design_id: str
    equipment_id: Optional[str] = None
    template_id: Optional[str] = None
    config_type: Optional[str] = None
    configuration: str
    variable_values: Dict[str, Any] = {}
    generated_by: str
    generated_at: Optional[datetime] = None
    is_applied: bool = False
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None
    parent_config_id: Optional[str] = None
    download_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ApplyConfigRequest(BaseModel):
    notes: Optional[str] = None

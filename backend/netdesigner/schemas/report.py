"""Pydantic schemas for reports and report templates"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime


FormatLiteral = Literal["pdf", "docx", "html", "markdown", "json"]
CategoryLiteral = Literal["standard", "compliance", "executive", "technical", "custom"]


# ==================== Reports ====================

class TemplateReportRequest(BaseModel):
    design_id: str
    template_id: str
    format: FormatLiteral = "pdf"


class ReportResponse(BaseModel):
    id: str
    design_id: str
    user_id: str
    report_type: str
    title: str
    content: Any
    format: str
    template_id: Optional[str] = None
    generated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    download_url: Optional[str] = None
    is_public: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="report_metadata")

    model_config = ConfigDict(from_attributes=True)


class ReportSummary(BaseModel):
    """Report listing entry without its content"""
    id: str
    design_id: str
    design_name: Optional[str] = None
    report_type: str
    title: str
    format: str
    generated_at: Optional[datetime] = None
    download_url: Optional[str] = None


# ==================== Report templates ====================

class TemplateSection(BaseModel):
    title: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)
    content_template: str = ""
    variables: List[str] = []
    order: Optional[int] = None
    page_break: bool = False


class ReportTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: CategoryLiteral = "standard"
    sections: List[TemplateSection] = Field(..., min_length=1)
    supported_formats: List[FormatLiteral] = ["pdf"]
    is_active: bool = True


class ReportTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[CategoryLiteral] = None
    sections: Optional[List[TemplateSection]] = None
    supported_formats: Optional[List[FormatLiteral]] = None


class TemplateClone(BaseModel):
    name: Optional[str] = None


class ReportTemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    sections: List[Dict[str, Any]] = []
    supported_formats: List[str] = []
    is_active: bool
    is_system_template: bool
    version: str
    created_by: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="template_metadata")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

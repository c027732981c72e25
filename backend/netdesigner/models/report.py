from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text, JSON, ForeignKey, Index
from datetime import datetime, timedelta
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


REPORT_TTL = timedelta(days=7)


class ReportType(str, enum.Enum):
    FULL = "full"
    SUMMARY = "summary"
    IP_SCHEME = "ip-scheme"
    EQUIPMENT = "equipment"
    IMPLEMENTATION = "implementation"
    CUSTOM = "custom"
    PROFESSIONAL = "professional"


class ReportFormat(str, enum.Enum):
    PDF = "pdf"
    DOCX = "docx"
    HTML = "html"
    MARKDOWN = "markdown"
    JSON = "json"


class TemplateCategory(str, enum.Enum):
    STANDARD = "standard"
    COMPLIANCE = "compliance"
    EXECUTIVE = "executive"
    TECHNICAL = "technical"
    CUSTOM = "custom"


def default_report_expiry() -> datetime:
    return datetime.utcnow() + REPORT_TTL


class NetworkReport(Base):
    """Generated report for a design"""
    __tablename__ = "network_reports"

    __table_args__ = (
        Index('ix_network_reports_design_id', 'design_id'),
        Index('ix_network_reports_user_id', 'user_id'),
        Index('ix_network_reports_expires_at', 'expires_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    report_type = Column(SQLEnum(ReportType), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(JSON, nullable=False)
    format = Column(SQLEnum(ReportFormat), default=ReportFormat.PDF, nullable=False)
    template_id = Column(GUID, ForeignKey("report_templates.id", ondelete="SET NULL"), nullable=True)
    generated_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, default=default_report_expiry)
    download_url = Column(String(500), nullable=True)
    storage_key = Column(String(500), nullable=True)
    is_public = Column(Boolean, default=False)
    # {version, generated_by: system|user}
    report_metadata = Column("metadata", JSON, nullable=False, default=lambda: {"version": "1.0", "generated_by": "system"})

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<NetworkReport {self.title}>"


class ReportTemplate(Base):
    """
    Reusable report layout.

    `sections` holds [{title, key, content_template, variables, order, page_break}];
    `content_template` is a Jinja2 template rendered against the design context.
    """
    __tablename__ = "report_templates"

    __table_args__ = (
        Index('ix_report_templates_category_active', 'category', 'is_active'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(SQLEnum(TemplateCategory), default=TemplateCategory.STANDARD, nullable=False)
    sections = Column(JSON, nullable=False, default=list)
    supported_formats = Column(JSON, nullable=False, default=lambda: ["pdf"])
    is_active = Column(Boolean, default=True)
    is_system_template = Column(Boolean, default=False)
    version = Column(String(20), default="1.0.0", nullable=False)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    template_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def ordered_sections(self):
        return sorted(self.sections or [], key=lambda s: s.get("order", 0))

    def __repr__(self):
        return f"<ReportTemplate {self.name} v{self.version}>"

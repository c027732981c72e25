"""Device configuration templates, their deployments and generated configs"""
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid
from netdesigner.models.equipment import DeviceConfigStatus


class ConfigType(str, enum.Enum):
    BASIC = "basic"
    VLAN = "vlan"
    ROUTING = "routing"
    SECURITY = "security"
    QOS = "qos"
    HA = "ha"


class ConfigSourceType(str, enum.Enum):
    TEMPLATE = "template"
    FILE = "file"


class ConfigurationTemplate(Base):
    """
    Vendor configuration with {{variable}} placeholders.

    `variables` holds [{name, description, default_value, required,
    validation_regex, example}]. `config_file` is set for file-based templates:
    {url, key, original_name, size, mime_type}.
    """
    __tablename__ = "configuration_templates"

    __table_args__ = (
        Index('ix_configuration_templates_type', 'equipment_type', 'config_type'),
        Index('ix_configuration_templates_vendor_model', 'vendor', 'model'),
        Index('ix_configuration_templates_is_active', 'is_active'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    equipment_type = Column(String(20), nullable=False)
    vendor = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    config_type = Column(SQLEnum(ConfigType), nullable=False)
    template = Column(Text, nullable=True)
    variables = Column(JSON, nullable=False, default=list)
    version = Column(String(20), default="1.0.0", nullable=False)

    config_source_type = Column(SQLEnum(ConfigSourceType), default=ConfigSourceType.TEMPLATE, nullable=False)
    config_file = Column(JSON, nullable=True)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    last_updated_by = Column(GUID, nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    deployments = relationship(
        "ConfigDeployment",
        back_populates="template",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ConfigDeployment.deployed_at",
    )

    def is_compatible_with(self, equipment) -> bool:
        category = equipment.category.value if hasattr(equipment.category, "value") else equipment.category
        return (
            bool(self.is_active)
            and self.equipment_type == category
            and self.vendor.lower() == (equipment.manufacturer or "").lower()
        )

    def __repr__(self):
        return f"<ConfigurationTemplate {self.name} v{self.version}>"


class ConfigDeployment(Base):
    """One deployment of a template onto a device"""
    __tablename__ = "config_deployments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    template_id = Column(GUID, ForeignKey("configuration_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    equipment_id = Column(GUID, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    deployed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    deployed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    status = Column(SQLEnum(DeviceConfigStatus), default=DeviceConfigStatus.PENDING, nullable=False)
    variable_values = Column(JSON, nullable=False, default=dict)
    rendered_config = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    template = relationship("ConfigurationTemplate", back_populates="deployments")


class GeneratedConfig(Base):
    """Rendered configuration for a device within a design"""
    __tablename__ = "generated_configs"

    __table_args__ = (
        Index('ix_generated_configs_design_equipment', 'design_id', 'equipment_id'),
        Index('ix_generated_configs_generated_by', 'generated_by'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False)
    equipment_id = Column(GUID, ForeignKey("equipment.id", ondelete="SET NULL"), nullable=True)
    template_id = Column(GUID, ForeignKey("configuration_templates.id", ondelete="SET NULL"), nullable=True)
    config_type = Column(String(20), nullable=True)
    configuration = Column(Text, nullable=False)
    variable_values = Column(JSON, nullable=False, default=dict)
    generated_by = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    generated_at = Column(DateTime, default=datetime.utcnow)
    is_applied = Column(Boolean, default=False)
    applied_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    parent_config_id = Column(GUID, ForeignKey("generated_configs.id", ondelete="SET NULL"), nullable=True)
    download_url = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<GeneratedConfig {self.id} ({self.config_type})>"

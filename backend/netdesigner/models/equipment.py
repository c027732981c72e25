"""Equipment catalogue and per-design recommendations"""
from sqlalchemy import (
    Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Text, JSON,
    ForeignKey, Index, Table, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class EquipmentCategory(str, enum.Enum):
    SWITCH = "switch"
    ROUTER = "router"
    FIREWALL = "firewall"
    AP = "ap"
    SERVER = "server"


class PriceRange(str, enum.Enum):
    BUDGET = "$"
    MODERATE = "$$"
    PREMIUM = "$$$"
    ENTERPRISE = "$$$$"


class DeviceConfigStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"
    ROLLED_BACK = "rolled-back"


# Many-to-many: equipment assigned to designs
design_equipment = Table(
    "design_equipment",
    Base.metadata,
    Column("design_id", GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), primary_key=True),
    Column("equipment_id", GUID, ForeignKey("equipment.id", ondelete="CASCADE"), primary_key=True),
    Column("assigned_at", DateTime, default=datetime.utcnow),
)


class Equipment(Base):
    """
    Catalogue entry for a network device.

    `specs`, `warranty`, `location`, `network_config` and `maintenance` are nested
    documents validated by netdesigner.schemas.equipment. `configurations` tracks
    configuration templates deployed onto this device:
    [{template_id, deployed_at, deployed_by, status, is_current}]
    """
    __tablename__ = "equipment"

    __table_args__ = (
        Index('ix_equipment_category', 'category'),
        Index('ix_equipment_manufacturer', 'manufacturer'),
        Index('ix_equipment_model', 'model'),
        Index('ix_equipment_created_by', 'created_by'),
        Index('ix_equipment_system_public', 'is_system_owned', 'is_public'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    category = Column(SQLEnum(EquipmentCategory), nullable=False)
    manufacturer = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)

    specs = Column(JSON, nullable=False, default=dict)
    price_range = Column(String(4), default=PriceRange.MODERATE.value, nullable=False)
    typical_use_case = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    datasheet_url = Column(String(500), nullable=True)
    is_popular = Column(Boolean, default=False)
    release_year = Column(Integer, nullable=True)
    end_of_life = Column(DateTime, nullable=True)
    warranty = Column(JSON, nullable=True)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_system_owned = Column(Boolean, default=False)
    is_public = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    location = Column(JSON, nullable=True)
    network_config = Column(JSON, nullable=True)
    maintenance = Column(JSON, nullable=True)
    configurations = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    designs = relationship("NetworkDesign", secondary=design_equipment, lazy="selectin")

    @property
    def display_name(self) -> str:
        return f"{self.manufacturer} {self.model}"

    @property
    def warranty_display(self) -> str:
        if not self.warranty:
            return "No warranty"
        return f"{self.warranty.get('months')} months ({self.warranty.get('type', 'limited')})"

    @property
    def design_ids(self):
        return [design.id for design in self.designs]

    @property
    def ports(self) -> int:
        return int((self.specs or {}).get("ports") or 0)

    @property
    def port_speed(self):
        return (self.specs or {}).get("port_speed")

    def __repr__(self):
        return f"<Equipment {self.display_name}>"


class EquipmentRecommendation(Base):
    """Recommended equipment computed for a design"""
    __tablename__ = "equipment_recommendations"

    __table_args__ = (
        UniqueConstraint('design_id', name='uq_equipment_recommendations_design'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False)
    # [{category, recommended_equipment_id, alternatives, quantity, placement, justification}]
    recommendations = Column(JSON, nullable=False, default=list)
    generated_at = Column(DateTime, default=datetime.utcnow)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Text, JSON, ForeignKey, Index
from datetime import datetime
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class DesignStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class NetworkDesign(Base):
    """
    A network design owned by one user.

    `requirements` and `existing_network_details` hold the nested documents
    validated by netdesigner.schemas.design.
    """
    __tablename__ = "network_designs"

    __table_args__ = (
        Index('ix_network_designs_user_status', 'user_id', 'design_status'),
        Index('ix_network_designs_created_at', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(GUID, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)

    design_name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    is_existing_network = Column(Boolean, default=False)
    existing_network_details = Column(JSON, nullable=True)
    requirements = Column(JSON, nullable=False, default=dict)

    design_status = Column(SQLEnum(DesignStatus), default=DesignStatus.DRAFT, nullable=False)
    optimized = Column(Boolean, default=False)
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_archived(self) -> bool:
        return self.design_status == DesignStatus.ARCHIVED

    def to_snapshot(self) -> dict:
        """Plain dict of the editable fields, used for version snapshots"""
        return {
            "design_name": self.design_name,
            "description": self.description,
            "is_existing_network": bool(self.is_existing_network),
            "existing_network_details": self.existing_network_details,
            "requirements": self.requirements or {},
            "design_status": self.design_status.value if self.design_status else None,
        }

    def __repr__(self):
        return f"<NetworkDesign {self.design_name}>"

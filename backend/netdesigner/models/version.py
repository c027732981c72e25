from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON, ForeignKey, Index, UniqueConstraint
from datetime import datetime

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


INITIAL_VERSION = "1.0.0"


class DesignVersion(Base):
    """Immutable snapshot of a design at a semantic version"""
    __tablename__ = "design_versions"

    __table_args__ = (
        UniqueConstraint('design_id', 'version', name='uq_design_versions_design_version'),
        Index('ix_design_versions_semver', 'design_id', 'major', 'minor', 'patch'),
        Index('ix_design_versions_is_published', 'is_published'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(String(20), nullable=False)
    major = Column(Integer, nullable=False, default=1)
    minor = Column(Integer, nullable=False, default=0)
    patch = Column(Integer, nullable=False, default=0)

    snapshot = Column(JSON, nullable=False)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # [{path, operation, old_value, new_value, impact, description}]
    changes = Column(JSON, nullable=False, default=list)
    notes = Column(String(500), nullable=True)
    is_published = Column(Boolean, default=False)
    published_at = Column(DateTime, nullable=True)
    parent_version_id = Column(GUID, ForeignKey("design_versions.id", ondelete="SET NULL"), nullable=True)
    tags = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def semantic_version(self) -> dict:
        return {"major": self.major, "minor": self.minor, "patch": self.patch}

    def __repr__(self):
        return f"<DesignVersion {self.design_id}@{self.version}>"

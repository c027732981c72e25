from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, JSON, ForeignKey, Index
from datetime import datetime
import enum

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class OptimizationType(str, enum.Enum):
    COST = "cost"
    PERFORMANCE = "performance"
    SECURITY = "security"
    RELIABILITY = "reliability"
    HYBRID = "hybrid"


class OptimizationStatus(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    APPLIED = "applied"
    REJECTED = "rejected"


LOCKED_STATUSES = (OptimizationStatus.RUNNING, OptimizationStatus.COMPLETED)


class DesignOptimization(Base):
    """Optimization analysis run against a design"""
    __tablename__ = "design_optimizations"

    __table_args__ = (
        Index('ix_design_optimizations_user_archived', 'user_id', 'archived'),
        Index('ix_design_optimizations_design_id', 'design_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    optimization_type = Column(SQLEnum(OptimizationType), default=OptimizationType.HYBRID, nullable=False)
    parameters = Column(JSON, nullable=False, default=dict)
    notes = Column(String(500), nullable=True)
    status = Column(SQLEnum(OptimizationStatus), default=OptimizationStatus.QUEUED, nullable=False)

    # [{area, description, impact, estimated_savings}]
    improvements = Column(JSON, nullable=False, default=list)
    # {before: {...}, after: {...}}
    metrics = Column(JSON, nullable=True)
    recommendations = Column(JSON, nullable=False, default=list)
    error_message = Column(String(500), nullable=True)
    report_url = Column(String(500), nullable=True)

    archived = Column(Boolean, default=False)
    cloned_from = Column(GUID, ForeignKey("design_optimizations.id", ondelete="SET NULL"), nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES

    def __repr__(self):
        return f"<DesignOptimization {self.optimization_type.value} ({self.status.value})>"

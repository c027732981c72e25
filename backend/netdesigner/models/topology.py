from sqlalchemy import Column, DateTime, JSON, ForeignKey, UniqueConstraint
from datetime import datetime

from netdesigner.core.database import Base
from netdesigner.core.types import GUID, generate_uuid


class NetworkTopology(Base):
    """Generated topology graph of a design (one per design)"""
    __tablename__ = "network_topologies"

    __table_args__ = (
        UniqueConstraint('design_id', name='uq_network_topologies_design'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    design_id = Column(GUID, ForeignKey("network_designs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # [{id, label, type, level, subnet, vlan}]
    nodes = Column(JSON, nullable=False, default=list)
    # [{from, to, label, bandwidth}]
    edges = Column(JSON, nullable=False, default=list)
    layout = Column(JSON, nullable=True)
    generated_at = Column(DateTime, default=datetime.utcnow)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<NetworkTopology {self.design_id} ({len(self.nodes or [])} nodes)>"

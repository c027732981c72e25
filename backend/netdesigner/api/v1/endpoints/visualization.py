"""
Visualization API

Generates (and regenerates) the topology graph of a design and serves a
positioned render model for client-side drawing.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime

from netdesigner.core.database import get_db
from netdesigner.core.logging_config import logger, set_design_id
from netdesigner.models.user import User
from netdesigner.models.design import NetworkDesign
from netdesigner.models.topology import NetworkTopology
from netdesigner.schemas.visualization import TopologyResponse, RenderModel
from netdesigner.modules.auth.dependencies import get_current_user, get_accessible_design, user_can_access_design
from netdesigner.services.topology_builder import build_topology, layout_positions, render_model


router = APIRouter()


async def find_topology(db: AsyncSession, design_id: str):
    result = await db.execute(select(NetworkTopology).where(NetworkTopology.design_id == design_id))
    return result.scalar_one_or_none()


@router.post("/{design_id}", response_model=TopologyResponse, status_code=status.HTTP_201_CREATED)
async def generate_topology(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Build the topology from the current requirements, replacing any earlier one"""
    design = await get_accessible_design(db, design_id, current_user)
    set_design_id(str(design.id))

    nodes, edges = build_topology(design.requirements or {})
    topology = await find_topology(db, design.id)
    if topology is None:
        topology = NetworkTopology(design_id=design.id, user_id=current_user.id)
        db.add(topology)

    topology.nodes = nodes
    topology.edges = edges
    topology.layout = layout_positions(nodes)
    topology.generated_at = datetime.utcnow()
    await db.commit()

    logger.info(f"[Visualization] Topology for design {design.id}: {len(nodes)} nodes, {len(edges)} edges")
    return topology


@router.get("/visualization/{topology_id}", response_model=RenderModel)
async def render_topology(
    topology_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    topology = await db.get(NetworkTopology, topology_id)
    if not topology:
        raise HTTPException(status_code=404, detail="Topology not found")

    design = await db.get(NetworkDesign, topology.design_id)
    if not design or not await user_can_access_design(db, design, current_user.id):
        raise HTTPException(status_code=403, detail="Not authorized to view this topology")

    return render_model(topology)


@router.get("/{design_id}", response_model=TopologyResponse)
async def get_topology(
    design_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    design = await get_accessible_design(db, design_id, current_user)
    topology = await find_topology(db, design.id)
    if not topology:
        raise HTTPException(status_code=404, detail="Topology has not been generated for this design")
    return topology

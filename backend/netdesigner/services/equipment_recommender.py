"""
Equipment recommendations for a design.

Sizes switches, routers and firewalls from the design requirements, then picks
the cheapest matching catalogue entries: the first is recommended, the next two
are offered as alternatives.
"""
import math
from datetime import datetime
from typing import Dict, Any, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from netdesigner.core.logging_config import logger
from netdesigner.models.design import NetworkDesign
from netdesigner.models.equipment import Equipment, EquipmentCategory, EquipmentRecommendation


HIGH_BANDWIDTH_MBPS = 500
ALTERNATIVES = 2


def switch_needs(requirements: Dict[str, Any]) -> Dict[str, Any]:
    wired = int(requirements.get("wired_users") or 0)
    download = float((requirements.get("bandwidth") or {}).get("download") or 0)
    count = math.ceil(wired / 24)
    return {
        "ports": count * 48,
        "speed": "10G" if download > HIGH_BANDWIDTH_MBPS else "1G",
        "count": max(count, 1),
    }


def router_needs(requirements: Dict[str, Any]) -> Dict[str, Any]:
    segments = len(requirements.get("segments") or []) if requirements.get("network_segmentation") else 0
    return {"ports": 2 + segments, "speed": "10G", "count": 1}


def firewall_needs(requirements: Dict[str, Any]) -> Dict[str, Any]:
    return {"ports": 2, "speed": "10G", "count": 1}


async def find_matching(
    db: AsyncSession,
    category: EquipmentCategory,
    min_ports: int,
    speed: str,
) -> List[Equipment]:
    """Active public equipment of a category with enough ports at the speed, cheapest first"""
    result = await db.execute(
        select(Equipment)
        .where(
            Equipment.category == category,
            Equipment.is_active == True,
            Equipment.is_public == True,
        )
        .order_by(Equipment.price_range, Equipment.manufacturer, Equipment.model)
    )
    return [
        item for item in result.scalars().all()
        if item.ports >= min_ports and item.port_speed == speed
    ]


def _entry(category: str, matches: List[Equipment], needs: Dict[str, Any], placement: str, justification: str) -> dict:
    return {
        "category": category,
        "recommended_equipment_id": matches[0].id if matches else None,
        "alternatives": [item.id for item in matches[1:1 + ALTERNATIVES]],
        "quantity": needs["count"],
        "placement": placement,
        "justification": justification,
        "required_ports": needs["ports"],
        "required_speed": needs["speed"],
    }


async def recommend_for_design(db: AsyncSession, design: NetworkDesign) -> EquipmentRecommendation:
    """Compute and persist (replacing any earlier result) the recommendation for a design"""
    requirements = design.requirements or {}
    switch = switch_needs(requirements)
    router = router_needs(requirements)
    firewall = firewall_needs(requirements)

    switches = await find_matching(db, EquipmentCategory.SWITCH, switch["ports"], switch["speed"])
    routers = await find_matching(db, EquipmentCategory.ROUTER, router["ports"], router["speed"])
    firewalls = await find_matching(db, EquipmentCategory.FIREWALL, firewall["ports"], firewall["speed"])

    download = (requirements.get("bandwidth") or {}).get("download")
    entries = [
        _entry(
            "switch", switches, switch, "Core distribution",
            f"Based on {requirements.get('total_users')} users and {download}Mbps bandwidth",
        ),
        _entry("router", routers, router, "Network edge", "For routing between network segments"),
        _entry(
            "firewall", firewalls, firewall, "Between border router and ISP",
            "For network security and traffic filtering",
        ),
    ]

    result = await db.execute(
        select(EquipmentRecommendation).where(EquipmentRecommendation.design_id == design.id)
    )
    recommendation = result.scalar_one_or_none()
    if recommendation is None:
        recommendation = EquipmentRecommendation(design_id=design.id)
        db.add(recommendation)
    recommendation.recommendations = entries
    recommendation.generated_at = datetime.utcnow()
    await db.flush()

    logger.info(
        f"[Equipment] Recommendations for design {design.id}: "
        f"{len(switches)} switches, {len(routers)} routers, {len(firewalls)} firewalls matched"
    )
    return recommendation


async def expand_recommendation(db: AsyncSession, recommendation: EquipmentRecommendation) -> List[dict]:
    """Replace equipment ids with catalogue entries for the response"""
    ids = set()
    for entry in recommendation.recommendations or []:
        if entry.get("recommended_equipment_id"):
            ids.add(entry["recommended_equipment_id"])
        ids.update(entry.get("alternatives") or [])

    catalogue: Dict[str, Equipment] = {}
    if ids:
        result = await db.execute(select(Equipment).where(Equipment.id.in_(ids)))
        catalogue = {item.id: item for item in result.scalars().all()}

    expanded = []
    for entry in recommendation.recommendations or []:
        item = dict(entry)
        item["recommended_equipment"] = catalogue.get(entry.get("recommended_equipment_id"))
        item["alternatives"] = [catalogue[i] for i in entry.get("alternatives") or [] if i in catalogue]
        expanded.append(item)
    return expanded

"""
Design optimization analysis.

Scores a design on cost, performance, security and reliability, proposes
improvements for the requested areas, then re-scores the design with those
improvements applied to produce before/after metrics.
"""
import copy
from datetime import datetime
from typing import Dict, Any, List, Callable, Tuple

from sqlalchemy import select

from netdesigner.core.database import get_session_local
from netdesigner.core.exceptions import NetDesignerError
from netdesigner.core.logging_config import logger, set_design_id
from netdesigner.models.design import NetworkDesign
from netdesigner.models.optimization import DesignOptimization, OptimizationStatus, OptimizationType
from netdesigner.services.pdf_generator import pdf_generator
from netdesigner.services.report_generator import ReportGenerator
from netdesigner.services.storage_service import storage_service


AREAS = ("cost", "performance", "security", "reliability")
SMALL_TIERS = ("1-50", "51-200")
MBPS_PER_HOST = 0.5


# ==================== Scoring ====================

def estimated_cost(requirements: Dict[str, Any]) -> int:
    cost_range = ReportGenerator.estimate_cost(requirements)["range"]
    return round((cost_range["low"] + cost_range["high"]) / 2)


def required_bandwidth(requirements: Dict[str, Any]) -> float:
    return max(ReportGenerator.calculate_total_hosts(requirements) * MBPS_PER_HOST, 10.0)


def performance_score(requirements: Dict[str, Any]) -> int:
    download = float((requirements.get("bandwidth") or {}).get("download") or 0)
    score = 100 * download / required_bandwidth(requirements)
    if requirements.get("network_segmentation"):
        score += 10
    return int(min(100, round(score)))


def security_score(requirements: Dict[str, Any]) -> int:
    security = requirements.get("security_requirements") or {}
    score = 30
    score += {"none": 0, "basic": 20, "enterprise": 30, "utm": 30}.get(security.get("firewall", "basic"), 0)
    for flag in ("ids", "ips", "content_filtering"):
        if security.get(flag):
            score += 10
    if requirements.get("network_segmentation"):
        score += 10
    if security.get("remote_access") == "rdp":
        score -= 10
    return max(0, min(100, score))


def reliability_score(requirements: Dict[str, Any]) -> int:
    redundancy = requirements.get("redundancy") or {}
    return 40 + 20 * sum(1 for key in ("internet", "core_switching", "power") if redundancy.get(key))


def score(requirements: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "estimated_cost": estimated_cost(requirements),
        "performance_score": performance_score(requirements),
        "security_score": security_score(requirements),
        "reliability_score": reliability_score(requirements),
    }


# ==================== Rules ====================

Rule = Tuple[str, Callable[[Dict[str, Any]], bool], Callable[[Dict[str, Any]], None], str, str, str]


def _security(requirements):
    return requirements.setdefault("security_requirements", {})


def _redundancy(requirements):
    return requirements.setdefault("redundancy", {})


def _raise_bandwidth(requirements):
    bandwidth = requirements.setdefault("bandwidth", {})
    bandwidth["download"] = required_bandwidth(requirements)
    if bandwidth.get("symmetric"):
        bandwidth["upload"] = bandwidth["download"]


# (area, applies, apply, description, impact, recommendation)
RULES: List[Rule] = [
    (
        "cost",
        lambda r: r.get("total_users") in SMALL_TIERS and _security(r).get("firewall") in ("enterprise", "utm"),
        lambda r: _security(r).update(firewall="basic"),
        "Replace the enterprise-class firewall with a basic perimeter firewall sized for the user count",
        "medium",
        "Right-size the firewall for a small office",
    ),
    (
        "cost",
        lambda r: r.get("budget_range") == "low" and bool(_security(r).get("ips")) and r.get("total_users") in SMALL_TIERS,
        lambda r: _security(r).update(ips=False, ids=True),
        "Run intrusion detection instead of inline prevention to avoid the IPS licence",
        "low",
        "Use IDS monitoring in place of IPS on a low budget",
    ),
    (
        "performance",
        lambda r: float((r.get("bandwidth") or {}).get("download") or 0) < required_bandwidth(r),
        _raise_bandwidth,
        "Increase the internet link to cover expected host demand",
        "high",
        "Upgrade internet bandwidth",
    ),
    (
        "performance",
        lambda r: any(s.get("bandwidth_priority") == "critical" for s in r.get("segments") or []),
        lambda r: None,
        "Apply QoS policies so critical segments keep priority under load",
        "medium",
        "Implement QoS policies for critical traffic",
    ),
    (
        "security",
        lambda r: _security(r).get("firewall", "basic") == "none",
        lambda r: _security(r).update(firewall="basic"),
        "Add a perimeter firewall between the edge router and the core",
        "high",
        "Deploy a perimeter firewall",
    ),
    (
        "security",
        lambda r: not _security(r).get("ids"),
        lambda r: _security(r).update(ids=True),
        "Enable intrusion detection on the perimeter",
        "medium",
        "Enable IDS monitoring",
    ),
    (
        "security",
        lambda r: _security(r).get("remote_access") == "rdp",
        lambda r: _security(r).update(remote_access="vpn"),
        "Move remote access from exposed RDP to a VPN",
        "high",
        "Replace direct RDP with VPN remote access",
    ),
    (
        "security",
        lambda r: not r.get("network_segmentation") and r.get("total_users") not in ("1-50",),
        lambda r: r.update(network_segmentation=True),
        "Segment the network into VLANs to contain lateral movement",
        "medium",
        "Introduce VLAN segmentation",
    ),
    (
        "reliability",
        lambda r: not _redundancy(r).get("internet"),
        lambda r: _redundancy(r).update(internet=True),
        "Add a second internet link on an independent provider",
        "high",
        "Add redundant internet connectivity",
    ),
    (
        "reliability",
        lambda r: not _redundancy(r).get("core_switching"),
        lambda r: _redundancy(r).update(core_switching=True),
        "Stack or pair the core switches",
        "medium",
        "Consider redundant links for core switches",
    ),
    (
        "reliability",
        lambda r: not _redundancy(r).get("power"),
        lambda r: _redundancy(r).update(power=True),
        "Put core equipment on UPS with redundant power supplies",
        "low",
        "Add UPS and redundant power",
    ),
]


def areas_for(optimization_type) -> Tuple[str, ...]:
    value = optimization_type.value if hasattr(optimization_type, "value") else optimization_type
    if value == OptimizationType.HYBRID.value:
        return AREAS
    return (value,)


def analyze(requirements: Dict[str, Any], optimization_type=OptimizationType.HYBRID) -> Dict[str, Any]:
    """
    Improvements, before/after metrics and recommendations for a design.

    Rules only fire for the areas of the optimization type; each applied rule
    mutates a projected copy of the requirements.
    """
    areas = areas_for(optimization_type)
    projected = copy.deepcopy(requirements or {})
    before = score(requirements or {})

    improvements = []
    recommendations = []
    for area, applies, apply, description, impact, recommendation in RULES:
        if area not in areas or not applies(projected):
            continue
        cost_before = estimated_cost(projected)
        apply(projected)
        improvements.append({
            "area": area,
            "description": description,
            "impact": impact,
            "estimated_savings": max(0, cost_before - estimated_cost(projected)),
        })
        recommendations.append(recommendation)

    return {
        "improvements": improvements,
        "metrics": {"before": before, "after": score(projected)},
        "recommendations": recommendations,
    }


# ==================== Background job ====================

async def run_optimization(optimization_id: str) -> None:
    """
    Background task: queued -> running -> completed (or failed).

    Uses its own session; marks the design optimized and stores a PDF summary.
    """
    session_factory = get_session_local()
    async with session_factory() as db:
        optimization = await db.get(DesignOptimization, optimization_id)
        if optimization is None:
            logger.warning(f"[Optimization] {optimization_id} vanished before it ran")
            return
        design = await db.get(NetworkDesign, optimization.design_id)
        set_design_id(str(optimization.design_id))

        optimization.status = OptimizationStatus.RUNNING
        await db.commit()

        try:
            if design is None:
                raise NetDesignerError("Design no longer exists", code="DESIGN_MISSING")

            result = analyze(design.requirements or {}, optimization.optimization_type)
            optimization.improvements = result["improvements"]
            optimization.metrics = result["metrics"]
            optimization.recommendations = result["recommendations"]

            pdf = pdf_generator.generate_optimization_pdf({
                "title": f"Optimization Report - {design.design_name}",
                "created_at": datetime.utcnow().isoformat(),
                **result,
            })
            stored = await storage_service.save(
                pdf, "reports", f"optimization-{optimization.id}.pdf", "application/pdf"
            )
            optimization.report_url = stored["url"]

            optimization.status = OptimizationStatus.COMPLETED
            optimization.completed_at = datetime.utcnow()
            design.optimized = True
            logger.info(
                f"[Optimization] {optimization.id} completed with {len(result['improvements'])} improvements"
            )
        except NetDesignerError as e:
            optimization.status = OptimizationStatus.FAILED
            optimization.error_message = e.message[:500]
            logger.error(f"[Optimization] {optimization.id} failed: {e.message}")

        await db.commit()


async def get_optimization(db, optimization_id: str, user_id: str):
    result = await db.execute(
        select(DesignOptimization).where(
            DesignOptimization.id == optimization_id,
            DesignOptimization.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()

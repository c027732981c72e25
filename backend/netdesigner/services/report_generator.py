"""
Report Generator
================
Builds report data for a network design (addressing, VLANs, equipment,
implementation phases, cost) and renders it into HTML sections with Jinja2.

Built-in section layouts live in netdesigner/templates/reports. User-defined
report templates are rendered in a sandboxed environment.
"""
import math
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from jinja2.sandbox import SandboxedEnvironment

from netdesigner.core.logging_config import logger
from netdesigner.services import ip_calculator


TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "reports"

USER_TIERS = ["1-50", "51-200", "201-500", "500+"]
BASE_COST = {"1-50": 5000, "51-200": 15000, "201-500": 40000, "500+": 80000}
COMPLEXITY_LEVELS = ["Low", "Medium", "High", "Very High"]

ROUTER_MODELS = {
    "1-50": ("Cisco ISR 1100", "Core routing for small office"),
    "51-200": ("Cisco ISR 4300", "Core routing for medium office"),
}
LARGE_ROUTER = ("Cisco ISR 4400", "Core routing for large enterprise")

FIREWALL_MODELS = {
    "basic": ("Fortinet FortiGate 60F", "Perimeter firewall"),
    "enterprise": ("Palo Alto PA-3220", "Enterprise next-generation firewall"),
    "utm": ("Fortinet FortiGate 200F UTM", "Unified threat management"),
}

SWITCH_MODEL = "Cisco Catalyst 9200"
ACCESS_POINT_MODEL = "Cisco Catalyst 9115AX"
USERS_PER_ACCESS_POINT = 30

PROFESSIONAL_SECTIONS = [
    ("Network Design Report", "title_page", True),
    ("Executive Summary", "executive_summary", True),
    ("Network Architecture", "network_architecture", False),
    ("IP Addressing Plan", "ip_plan", True),
    ("Equipment Recommendations", "equipment", False),
    ("Implementation Plan", "implementation_plan", True),
    ("Budget Estimate", "budget", False),
]


def format_currency(value) -> str:
    try:
        return f"${value:,.0f}"
    except (TypeError, ValueError):
        return str(value)


def format_date(value) -> str:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if isinstance(value, datetime):
        return value.strftime("%B %d, %Y")
    return str(value or "")


def format_ip(value) -> str:
    return value.split("/")[0] if value else "N/A"


def _register_filters(env: Environment) -> Environment:
    env.filters["currency"] = format_currency
    env.filters["date"] = format_date
    env.filters["format_ip"] = format_ip
    env.filters["bandwidth"] = lambda value: f"{value} Mbps"
    return env


def design_context(design) -> Dict[str, Any]:
    """Plain dict view of a NetworkDesign row"""
    context = design.to_snapshot()
    context.update({
        "id": str(design.id),
        "user_id": str(design.user_id),
        "version": design.version,
        "optimized": bool(design.optimized),
    })
    return context


def js_round(value: float) -> int:
    """Round half up"""
    return int(math.floor(value + 0.5))


class ReportGenerator:
    """Computes report data and renders report sections"""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.env = _register_filters(Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        ))
        self.sandbox = _register_filters(SandboxedEnvironment(autoescape=True))

    # ==================== Calculations ====================

    @staticmethod
    def calculate_total_hosts(requirements: Dict[str, Any]) -> int:
        """Wired plus wireless users with 20% growth headroom"""
        total = (requirements.get("wired_users") or 0) + (requirements.get("wireless_users") or 0)
        return math.ceil(total * 1.2)

    @staticmethod
    def generate_equipment_recommendations(requirements: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
        recommendations: Dict[str, List[Dict[str, Any]]] = {
            "routers": [],
            "switches": [],
            "access_points": [],
            "security_devices": [],
        }
        tier = requirements.get("total_users")
        wired = requirements.get("wired_users") or 0
        wireless = requirements.get("wireless_users") or 0

        model, purpose = ROUTER_MODELS.get(tier, LARGE_ROUTER)
        recommendations["routers"].append({"model": model, "quantity": 1, "purpose": purpose})

        if requirements.get("network_segmentation"):
            switch_count = math.ceil(wired / 24) + 1
        else:
            switch_count = math.ceil(wired / 48)
        recommendations["switches"].append({
            "model": SWITCH_MODEL,
            "quantity": max(switch_count, 1),
            "purpose": "Access layer switching",
        })

        firewall = (requirements.get("security_requirements") or {}).get("firewall", "basic")
        if firewall in FIREWALL_MODELS:
            model, purpose = FIREWALL_MODELS[firewall]
            recommendations["security_devices"].append({"model": model, "quantity": 1, "purpose": purpose})

        if wireless > 0:
            recommendations["access_points"].append({
                "model": ACCESS_POINT_MODEL,
                "quantity": math.ceil(wireless / USERS_PER_ACCESS_POINT),
                "purpose": "Wireless coverage",
            })

        return recommendations

    @staticmethod
    def generate_implementation_plan(requirements: Dict[str, Any]) -> List[Dict[str, Any]]:
        phases = [{
            "name": "Core Infrastructure",
            "tasks": [
                "Install and configure core routers",
                "Set up primary switching infrastructure",
                "Establish internet connectivity",
            ],
            "duration": "2 weeks",
            "dependencies": [],
        }]
        if requirements.get("network_segmentation"):
            phases.append({
                "name": "Network Segmentation",
                "tasks": ["Create VLANs per segment", "Configure inter-VLAN routing", "Apply isolation policies"],
                "duration": "1 week",
                "dependencies": ["Core Infrastructure"],
            })
        phases.append({
            "name": "Security Implementation",
            "tasks": ["Deploy firewall policies", "Enable intrusion detection where required", "Configure remote access"],
            "duration": "1 week",
            "dependencies": ["Core Infrastructure"],
        })
        if (requirements.get("wireless_users") or 0) > 0:
            phases.append({
                "name": "Wireless Deployment",
                "tasks": ["Conduct site survey", "Mount and configure access points", "Configure SSIDs"],
                "duration": "1 week",
                "dependencies": ["Core Infrastructure"],
            })
        phases.append({
            "name": "Testing & Documentation",
            "tasks": ["Validate connectivity and failover", "Document configuration", "Hand over to operations"],
            "duration": "1 week",
            "dependencies": [phase["name"] for phase in phases],
        })
        return phases

    @staticmethod
    def calculate_total_duration(phases: List[Dict[str, Any]]) -> str:
        weeks = 0
        for phase in phases:
            number = str(phase.get("duration", "")).split()[0]
            weeks += int(number) if number.isdigit() else 0
        if weeks > 4:
            return f"{js_round(weeks / 4)} months"
        return f"{weeks} weeks"

    @staticmethod
    def estimate_cost(requirements: Dict[str, Any]) -> Dict[str, Any]:
        base_cost = float(BASE_COST.get(requirements.get("total_users"), 0))
        security = requirements.get("security_requirements") or {}
        if security.get("firewall") in ("enterprise", "utm"):
            base_cost *= 1.5
        if security.get("ips"):
            base_cost += 3000
        return {
            "range": {"low": js_round(base_cost * 0.8), "high": js_round(base_cost * 1.2)},
            "currency": "USD",
            "notes": "Estimate includes hardware and basic configuration",
        }

    @staticmethod
    def complexity_level(requirements: Dict[str, Any]) -> str:
        tier = requirements.get("total_users")
        index = USER_TIERS.index(tier) if tier in USER_TIERS else len(USER_TIERS) - 1
        redundancy = requirements.get("redundancy") or {}
        if requirements.get("network_segmentation") and any(redundancy.values()):
            index += 1
        return COMPLEXITY_LEVELS[min(index, len(COMPLEXITY_LEVELS) - 1)]

    def generate_summary(self, requirements: Dict[str, Any], phases: List[Dict[str, Any]]) -> Dict[str, Any]:
        bandwidth = requirements.get("bandwidth") or {}
        return {
            "total_users": requirements.get("total_users"),
            "total_hosts": self.calculate_total_hosts(requirements),
            "bandwidth": f"{bandwidth.get('upload')}/{bandwidth.get('download')} Mbps",
            "security_level": (requirements.get("security_requirements") or {}).get("firewall", "basic"),
            "estimated_cost": self.estimate_cost(requirements),
            "complexity": self.complexity_level(requirements),
            "duration": self.calculate_total_duration(phases),
        }

    # ==================== Reports ====================

    def generate_full_report(self, design, company: Optional[str] = None) -> Dict[str, Any]:
        """Complete report data for a design"""
        context = design_context(design)
        requirements = context["requirements"]
        ip_scheme = requirements.get("ip_scheme") or {}
        private_block = ip_scheme.get("private") or ip_calculator.DEFAULT_PRIVATE_BLOCK

        base_network = private_block
        existing = context.get("existing_network_details") or {}
        if context.get("is_existing_network") and existing.get("current_ip_scheme"):
            base_network = existing["current_ip_scheme"]

        services = requirements.get("services") or {}
        phases = self.generate_implementation_plan(requirements)

        return {
            "design": context,
            "company": company,
            "network": {
                "ip_scheme": ip_calculator.calculate_subnets(
                    base_network, self.calculate_total_hosts(requirements)
                ),
                "vlan_scheme": ip_calculator.calculate_vlans(
                    requirements.get("segments") or [], private_block
                ) if requirements.get("network_segmentation") else None,
                "public_ips": ip_calculator.calculate_public_ip_allocation(
                    ip_scheme.get("public_ips") or 0,
                    (services.get("network") or []) + (services.get("on_premise") or []),
                ),
            },
            "equipment": self.generate_equipment_recommendations(requirements),
            "implementation": phases,
            "summary": self.generate_summary(requirements, phases),
            "generated_at": datetime.utcnow().isoformat(),
        }

    def generate_professional_report(self, design, company: Optional[str] = None) -> Dict[str, Any]:
        """Title page plus narrative sections, each rendered to HTML"""
        data = self.generate_full_report(design, company)
        sections = []
        for title, key, page_break in PROFESSIONAL_SECTIONS:
            content = self.env.get_template(f"{key}.html").render(**data)
            sections.append({"title": title, "key": key, "content": content, "page_break": page_break})

        return {
            "title": f"Network Design Report - {design.design_name}",
            "sections": sections,
            "metadata": {
                "generated_at": data["generated_at"],
                "version": "1.0",
                "client": company or "Client",
            },
        }

    def generate_from_template(self, design, template, user=None) -> Dict[str, Any]:
        """
        Render a ReportTemplate's sections in order. A section that fails to
        render becomes an error block; the rest of the report still renders.
        """
        data = self.generate_full_report(design, getattr(user, "company", None))
        compiled = []
        for section in template.ordered_sections:
            try:
                content = self.sandbox.from_string(section.get("content_template") or "").render(
                    **data, section=section
                )
                page_break = bool(section.get("page_break"))
            except Exception as e:
                logger.warning(f"[Reports] Section '{section.get('key')}' of template {template.id} failed: {e}")
                content = f'<div class="error">Error rendering this section: {e}</div>'
                page_break = False
            compiled.append({
                "title": section.get("title"),
                "key": section.get("key"),
                "content": content,
                "page_break": page_break,
            })

        metadata = {
            "template": template.name,
            "template_version": template.version,
            "design_version": design.version,
            "generated_at": data["generated_at"],
            "author": getattr(user, "name", None) or "System",
            "client": getattr(user, "company", None) or "Client",
        }
        metadata.update(template.template_metadata or {})
        return {
            "title": f"{design.design_name} - {template.name}",
            "sections": compiled,
            "metadata": metadata,
        }


report_generator = ReportGenerator()

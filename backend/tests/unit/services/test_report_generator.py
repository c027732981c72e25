"""
Unit Tests for the report generator
"""
import pytest

from netdesigner.models.design import NetworkDesign, DesignStatus
from netdesigner.models.report import ReportTemplate
from netdesigner.services.report_generator import ReportGenerator, report_generator, js_round


def make_requirements(**overrides):
    requirements = {
        "total_users": "51-200",
        "wired_users": 100,
        "wireless_users": 50,
        "network_segmentation": False,
        "segments": [],
        "bandwidth": {"upload": 100, "download": 200, "symmetric": False},
        "services": {"cloud": [], "on_premise": [], "network": ["vpn"]},
        "ip_scheme": {"private": "10.0.0.0/8", "public_ips": 1, "ipv6": False},
        "security_requirements": {
            "firewall": "enterprise",
            "ids": False,
            "ips": True,
            "content_filtering": False,
            "remote_access": "vpn",
        },
        "redundancy": {"internet": False, "core_switching": False, "power": False},
        "budget_range": "medium",
    }
    requirements.update(overrides)
    return requirements


def make_design(requirements=None) -> NetworkDesign:
    return NetworkDesign(
        id="11111111-1111-1111-1111-111111111111",
        user_id="22222222-2222-2222-2222-222222222222",
        design_name="Branch Office",
        description="Branch network",
        is_existing_network=False,
        requirements=requirements or make_requirements(),
        design_status=DesignStatus.DRAFT,
        optimized=False,
        version=1,
    )


class TestCalculations:

    def test_total_hosts_adds_growth(self):
        assert ReportGenerator.calculate_total_hosts(make_requirements()) == 180

    def test_js_round_half_up(self):
        assert js_round(1.5) == 2
        assert js_round(2.5) == 3
        assert js_round(1.25) == 1

    def test_equipment_recommendations(self):
        equipment = ReportGenerator.generate_equipment_recommendations(make_requirements())

        assert equipment["routers"][0]["model"] == "Cisco ISR 4300"
        assert equipment["switches"][0]["quantity"] == 3
        assert equipment["security_devices"][0]["model"] == "Palo Alto PA-3220"
        assert equipment["access_points"][0]["quantity"] == 2

    def test_no_firewall_means_no_security_device(self):
        requirements = make_requirements(security_requirements={"firewall": "none"})
        equipment = ReportGenerator.generate_equipment_recommendations(requirements)
        assert equipment["security_devices"] == []

    def test_cost_estimate(self):
        cost = ReportGenerator.estimate_cost(make_requirements())

        assert cost["range"] == {"low": 20400, "high": 30600}
        assert cost["currency"] == "USD"

    def test_complexity_raised_by_segmentation_with_redundancy(self):
        flat = make_requirements()
        segmented = make_requirements(
            network_segmentation=True,
            segments=[{"name": "Staff", "type": "department", "users": 10}],
            redundancy={"internet": True},
        )

        assert ReportGenerator.complexity_level(flat) == "Medium"
        assert ReportGenerator.complexity_level(segmented) == "High"

    def test_implementation_plan_phases(self):
        phases = ReportGenerator.generate_implementation_plan(make_requirements())

        names = [phase["name"] for phase in phases]
        assert names == [
            "Core Infrastructure",
            "Security Implementation",
            "Wireless Deployment",
            "Testing & Documentation",
        ]
        assert phases[-1]["dependencies"] == names[:-1]

    @pytest.mark.parametrize("weeks,expected", [
        ([2, 1, 1], "4 weeks"),
        ([2, 1, 1, 1, 1], "2 months"),
    ])
    def test_total_duration(self, weeks, expected):
        phases = [{"duration": f"{w} weeks"} for w in weeks]
        assert ReportGenerator.calculate_total_duration(phases) == expected


class TestReports:

    def test_full_report(self):
        report = report_generator.generate_full_report(make_design(), "Acme Ltd")

        assert report["company"] == "Acme Ltd"
        assert report["design"]["design_name"] == "Branch Office"
        assert report["network"]["ip_scheme"][0]["cidr"] == "10.0.0.0/24"
        assert len(report["network"]["ip_scheme"]) == 5
        assert report["network"]["vlan_scheme"] is None
        assert report["network"]["public_ips"]["allocations"][0]["purpose"] == "Firewall/NAT"
        assert report["summary"]["total_hosts"] == 180
        assert report["summary"]["bandwidth"] == "100/200 Mbps"

    def test_full_report_uses_existing_ip_scheme(self):
        design = make_design()
        design.is_existing_network = True
        design.existing_network_details = {"current_topology": "star", "current_ip_scheme": "172.16.0.0/16"}

        report = report_generator.generate_full_report(design)

        assert report["network"]["ip_scheme"][0]["cidr"] == "172.16.0.0/24"

    def test_professional_report_sections(self):
        report = report_generator.generate_professional_report(make_design(), "Acme Ltd")

        keys = [section["key"] for section in report["sections"]]
        assert keys == [
            "title_page",
            "executive_summary",
            "network_architecture",
            "ip_plan",
            "equipment",
            "implementation_plan",
            "budget",
        ]
        assert "Branch Office" in report["sections"][0]["content"]
        assert "Acme Ltd" in report["sections"][0]["content"]
        assert report["metadata"]["client"] == "Acme Ltd"

    def test_template_report_isolates_failing_section(self):
        template = ReportTemplate(
            id="33333333-3333-3333-3333-333333333333",
            name="Custom",
            version="1.0.0",
            sections=[
                {"key": "broken", "title": "Broken", "order": 1, "content_template": "{{ 1 / 0 }}"},
                {"key": "intro", "title": "Intro", "order": 0,
                 "content_template": "<p>{{ design.design_name }} for {{ summary.total_users }}</p>"},
            ],
            template_metadata={"company": "Acme"},
        )

        report = report_generator.generate_from_template(make_design(), template)

        assert [s["key"] for s in report["sections"]] == ["intro", "broken"]
        assert report["sections"][0]["content"] == "<p>Branch Office for 51-200</p>"
        assert "Error rendering this section" in report["sections"][1]["content"]
        assert report["metadata"]["company"] == "Acme"
        assert report["metadata"]["author"] == "System"

    def test_sandbox_blocks_unsafe_attributes(self):
        template = ReportTemplate(
            id="44444444-4444-4444-4444-444444444444",
            name="Unsafe",
            version="1.0.0",
            sections=[{
                "key": "escape",
                "title": "Escape",
                "order": 0,
                "content_template": "{{ design.__class__.__mro__ }}",
            }],
            template_metadata={},
        )

        report = report_generator.generate_from_template(make_design(), template)

        assert "Error rendering this section" in report["sections"][0]["content"]

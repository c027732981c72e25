"""
Unit Tests for the IP calculator
Tests for: subnet sizing, subnet carving, VLAN plans, public IP allocation
"""
import pytest

from netdesigner.core.exceptions import ValidationError
from netdesigner.services.ip_calculator import (
    subnet_prefix_for_hosts,
    calculate_subnets,
    allocate_sequential,
    calculate_vlans,
    calculate_public_ip_allocation,
)


class TestSubnetSizing:
    """Smallest prefix that fits the host count"""

    @pytest.mark.parametrize("hosts,prefix", [
        (1, 27),
        (30, 27),
        (31, 26),
        (62, 26),
        (200, 24),
        (255, 23),
        (1000, 22),
        (2000, 16),
    ])
    def test_prefix_for_hosts(self, hosts, prefix):
        assert subnet_prefix_for_hosts(hosts) == prefix


class TestCalculateSubnets:

    def test_carves_consecutive_subnets(self):
        subnets = calculate_subnets("192.168.0.0/16", 50, count=3)

        assert [s["cidr"] for s in subnets] == [
            "192.168.0.0/26",
            "192.168.0.64/26",
            "192.168.0.128/26",
        ]
        first = subnets[0]
        assert first["gateway"] == "192.168.0.1"
        assert first["broadcast"] == "192.168.0.63"
        assert first["subnet_mask"] == "255.255.255.192"
        assert first["usable_hosts"] == 62
        assert first["range"] == "192.168.0.1 - 192.168.0.62"
        assert first["name"] == "Subnet 1"

    def test_block_smaller_than_needed_returns_whole_block(self):
        subnets = calculate_subnets("192.168.1.0/24", 1000)

        assert len(subnets) == 1
        assert subnets[0]["cidr"] == "192.168.1.0/24"

    def test_defaults_to_private_block(self):
        subnets = calculate_subnets(None, 10, count=1)
        assert subnets[0]["cidr"] == "192.168.0.0/27"

    def test_invalid_network_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_subnets("not-a-network", 10)
        assert exc_info.value.details["field"] == "ip_scheme"


class TestAllocateSequential:

    def test_aligns_to_subnet_boundary(self):
        networks = allocate_sequential("10.0.0.0/24", [27, 25])
        assert [str(n) for n in networks] == ["10.0.0.0/27", "10.0.0.128/25"]

    def test_block_too_small(self):
        with pytest.raises(ValidationError):
            allocate_sequential("192.168.0.0/24", [24, 27])


class TestCalculateVlans:

    def test_one_vlan_per_segment(self):
        segments = [
            {"name": "Engineering", "type": "department", "users": 60},
            {"name": "Finance", "type": "department", "users": 25, "isolation_level": "vlans"},
        ]

        vlans = calculate_vlans(segments, "10.0.0.0/8")

        assert [v["vlan_id"] for v in vlans] == [100, 101]
        assert vlans[0]["subnet"] == "10.0.0.0/25"
        assert vlans[0]["gateway"] == "10.0.0.1"
        assert vlans[1]["subnet"] == "10.0.0.128/27"
        assert vlans[1]["isolation_level"] == "vlans"
        assert vlans[0]["isolation_level"] == "none"
        assert vlans[0]["recommended_config"]["allowed_vlans"] == [100, 101]

    def test_no_segments(self):
        assert calculate_vlans([]) == []


class TestPublicIpAllocation:

    def test_roles_limited_by_count(self):
        allocation = calculate_public_ip_allocation(2, ["Web", "VPN"])

        assert allocation["available_ips"] == 2
        assert allocation["used_ips"] == 2
        assert allocation["allocations"][0] == {
            "purpose": "Firewall/NAT",
            "ip": "203.0.113.1",
            "services": ["security"],
        }
        assert allocation["allocations"][1]["purpose"] == "Web Server"
        assert allocation["allocations"][1]["ip"] == "203.0.113.2"

    def test_no_public_ips(self):
        allocation = calculate_public_ip_allocation(0, ["web"])
        assert allocation["allocations"] == []
        assert allocation["used_ips"] == 0

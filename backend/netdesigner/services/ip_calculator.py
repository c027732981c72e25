"""
IP addressing helpers: subnet sizing, subnet carving, VLAN plans and public IP
allocation for a network design.
"""
import ipaddress
from typing import List, Dict, Any, Optional, Iterable

from netdesigner.core.exceptions import ValidationError


DEFAULT_PRIVATE_BLOCK = "192.168.0.0/16"
PUBLIC_DOCUMENTATION_RANGE = "203.0.113.0/24"
VLAN_BASE = 100

# (max usable hosts, prefix length)
SUBNET_SIZES = [
    (30, 27),
    (62, 26),
    (126, 25),
    (254, 24),
    (510, 23),
    (1022, 22),
]


def subnet_prefix_for_hosts(hosts: int) -> int:
    """Smallest listed prefix holding `hosts` usable addresses; /16 beyond /22"""
    for max_hosts, prefix in SUBNET_SIZES:
        if hosts <= max_hosts:
            return prefix
    return 16


def _parse_network(base_network: str) -> ipaddress.IPv4Network:
    try:
        return ipaddress.IPv4Network(base_network, strict=False)
    except ValueError:
        raise ValidationError(f"Invalid network: {base_network}", field="ip_scheme")


def describe_subnet(network: ipaddress.IPv4Network, name: str) -> Dict[str, Any]:
    """Addressing facts for one subnet"""
    if network.prefixlen >= 31:
        first = last = network.network_address
        usable = network.num_addresses
    else:
        first = network.network_address + 1
        last = network.broadcast_address - 1
        usable = network.num_addresses - 2
    return {
        "name": name,
        "network": str(network.network_address),
        "cidr": str(network),
        "range": f"{first} - {last}",
        "gateway": str(first),
        "broadcast": str(network.broadcast_address),
        "subnet_mask": str(network.netmask),
        "usable_hosts": usable,
    }


def calculate_subnets(
    base_network: Optional[str],
    hosts: int,
    count: int = 5,
) -> List[Dict[str, Any]]:
    """
    Carve `count` consecutive equal-sized subnets for `hosts` hosts out of
    `base_network`. Fewer are returned when the block is too small.
    """
    block = _parse_network(base_network or DEFAULT_PRIVATE_BLOCK)
    prefix = subnet_prefix_for_hosts(hosts)
    if prefix < block.prefixlen:
        candidates: Iterable[ipaddress.IPv4Network] = [block]
    else:
        candidates = block.subnets(new_prefix=prefix)

    subnets = []
    for index, network in enumerate(candidates):
        if index >= count:
            break
        subnets.append(describe_subnet(network, f"Subnet {index + 1}"))
    return subnets


def allocate_sequential(base_network: str, prefixes: List[int]) -> List[ipaddress.IPv4Network]:
    """
    Allocate non-overlapping subnets of the given prefix lengths, in order,
    from the start of `base_network`.
    """
    block = _parse_network(base_network)
    cursor = int(block.network_address)
    end = int(block.broadcast_address)
    allocated = []
    for prefix in prefixes:
        prefix = max(prefix, block.prefixlen)
        size = 2 ** (32 - prefix)
        # align to the subnet boundary
        if cursor % size:
            cursor += size - (cursor % size)
        if cursor + size - 1 > end:
            raise ValidationError(
                f"Address block {block} is too small for the requested subnets",
                field="ip_scheme"
            )
        allocated.append(ipaddress.IPv4Network((cursor, prefix)))
        cursor += size
    return allocated


def calculate_vlans(
    segments: List[Dict[str, Any]],
    base_network: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """One VLAN per segment, numbered from 100, each with its own subnet"""
    if not segments:
        return []
    prefixes = [subnet_prefix_for_hosts(int(segment.get("users") or 1)) for segment in segments]
    networks = allocate_sequential(base_network or DEFAULT_PRIVATE_BLOCK, prefixes)
    vlan_ids = [VLAN_BASE + index for index in range(len(segments))]

    vlans = []
    for index, (segment, network) in enumerate(zip(segments, networks)):
        subnet = describe_subnet(network, segment.get("name"))
        vlans.append({
            "vlan_id": vlan_ids[index],
            "name": segment.get("name"),
            "type": segment.get("type"),
            "users": segment.get("users"),
            "subnet": subnet["cidr"],
            "gateway": subnet["gateway"],
            "isolation_level": segment.get("isolation_level", "none"),
            "recommended_config": {
                "trunk": True,
                "native_vlan": 1,
                "allowed_vlans": vlan_ids,
            },
        })
    return vlans


def calculate_public_ip_allocation(count: int, services: Optional[List[str]] = None) -> Dict[str, Any]:
    """Assign public addresses from the documentation range to edge roles"""
    services = [s.lower() for s in (services or [])]
    hosts = ipaddress.IPv4Network(PUBLIC_DOCUMENTATION_RANGE).hosts()
    allocations = []

    if count > 0:
        roles = [("Firewall/NAT", ["security"])]
        if any("web" in s for s in services):
            roles.append(("Web Server", ["http", "https"]))
        if any("vpn" in s for s in services):
            roles.append(("VPN Endpoint", ["ipsec", "openvpn"]))

        for purpose, role_services in roles[:count]:
            allocations.append({
                "purpose": purpose,
                "ip": str(next(hosts)),
                "services": role_services,
            })

    return {
        "available_ips": count,
        "used_ips": len(allocations),
        "allocations": allocations,
    }

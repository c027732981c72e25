"""
Topology builder
================
Derives a layered topology graph from a design's requirements:

    level 0  internet cloud
    level 1  edge router(s)
    level 2  firewall
    level 3  core switch
    level 4  access switches and on-premise servers
    level 5  user groups

Subnets and VLAN ids come from the IP calculator.
"""
from collections import defaultdict
from typing import Dict, Any, List, Tuple

from netdesigner.services import ip_calculator
from netdesigner.services.report_generator import ReportGenerator


HIGH_BANDWIDTH_MBPS = 500

LEVEL_HEIGHT = 120
NODE_SPACING = 160
MARGIN = 60


def _node(node_id: str, label: str, node_type: str, level: int, subnet=None, vlan=None) -> Dict[str, Any]:
    return {"id": node_id, "label": label, "type": node_type, "level": level, "subnet": subnet, "vlan": vlan}


def _edge(source: str, target: str, label: str = None, bandwidth: str = None) -> Dict[str, Any]:
    return {"from": source, "to": target, "label": label, "bandwidth": bandwidth}


def build_topology(requirements: Dict[str, Any]) -> Tuple[List[dict], List[dict]]:
    """Nodes and edges for a design's requirements"""
    requirements = requirements or {}
    bandwidth = requirements.get("bandwidth") or {}
    download = bandwidth.get("download") or 0
    uplink = "10G" if float(download) > HIGH_BANDWIDTH_MBPS else "1G"
    redundancy = requirements.get("redundancy") or {}
    security = requirements.get("security_requirements") or {}
    services = requirements.get("services") or {}
    private_block = (requirements.get("ip_scheme") or {}).get("private") or ip_calculator.DEFAULT_PRIVATE_BLOCK

    nodes = [_node("internet", "Internet", "cloud", 0)]
    edges = []

    routers = ["router-1"]
    if redundancy.get("internet"):
        routers.append("router-2")
    for index, router_id in enumerate(routers, start=1):
        nodes.append(_node(router_id, f"Edge Router {index}", "router", 1))
        edges.append(_edge("internet", router_id, "WAN", f"{download} Mbps"))

    upstream = routers
    firewall = security.get("firewall", "basic")
    if firewall != "none":
        nodes.append(_node("firewall", f"Firewall ({firewall})", "firewall", 2))
        for router_id in routers:
            edges.append(_edge(router_id, "firewall", "Outside", uplink))
        upstream = ["firewall"]

    nodes.append(_node("core-switch", "Core Switch", "switch", 3))
    for source in upstream:
        edges.append(_edge(source, "core-switch", "Inside", uplink))

    if requirements.get("network_segmentation") and requirements.get("segments"):
        vlans = ip_calculator.calculate_vlans(requirements["segments"], private_block)
        for index, vlan in enumerate(vlans, start=1):
            switch_id = f"access-switch-{index}"
            group_id = f"user-group-{index}"
            nodes.append(_node(switch_id, f"{vlan['name']} Switch", "switch", 4, vlan["subnet"], vlan["vlan_id"]))
            nodes.append(_node(group_id, f"{vlan['name']} ({vlan['users']} users)", "user-group", 5,
                               vlan["subnet"], vlan["vlan_id"]))
            edges.append(_edge("core-switch", switch_id, f"VLAN {vlan['vlan_id']}", "1G"))
            edges.append(_edge(switch_id, group_id, vlan["name"], "1G"))
    else:
        hosts = ReportGenerator.calculate_total_hosts(requirements)
        subnets = ip_calculator.calculate_subnets(private_block, hosts, count=2)
        wired_subnet = subnets[0]["cidr"] if subnets else None
        wireless_subnet = subnets[1]["cidr"] if len(subnets) > 1 else wired_subnet

        nodes.append(_node("access-switch-1", "Access Switch", "switch", 4, wired_subnet))
        edges.append(_edge("core-switch", "access-switch-1", "Access", "1G"))
        wired = int(requirements.get("wired_users") or 0)
        if wired:
            nodes.append(_node("wired-users", f"Wired Users ({wired})", "user-group", 5, wired_subnet))
            edges.append(_edge("access-switch-1", "wired-users", "Wired", "1G"))
        wireless = int(requirements.get("wireless_users") or 0)
        if wireless:
            nodes.append(_node("wireless-users", f"Wireless Users ({wireless})", "user-group", 5, wireless_subnet))
            edges.append(_edge("access-switch-1", "wireless-users", "Wireless", "1G"))

    for service in services.get("on_premise") or []:
        server_id = f"server-{service}"
        nodes.append(_node(server_id, f"{service.upper()} Server", "server", 4))
        edges.append(_edge("core-switch", server_id, service, uplink))

    return nodes, edges


def layout_positions(nodes: List[dict]) -> Dict[str, Any]:
    """x/y for each node: one row per level, nodes spread evenly across the row"""
    by_level: Dict[int, List[dict]] = defaultdict(list)
    for node in nodes:
        by_level[node.get("level", 0)].append(node)

    widest = max((len(row) for row in by_level.values()), default=1)
    width = widest * NODE_SPACING + 2 * MARGIN
    height = (max(by_level.keys(), default=0) + 1) * LEVEL_HEIGHT + 2 * MARGIN

    positions = {}
    for level, row in by_level.items():
        step = (width - 2 * MARGIN) / (len(row) + 1)
        for index, node in enumerate(row, start=1):
            positions[node["id"]] = {"x": MARGIN + index * step, "y": MARGIN + level * LEVEL_HEIGHT}

    return {"width": width, "height": height, "positions": positions}


def render_model(topology) -> Dict[str, Any]:
    """Positioned nodes and edges for client-side drawing"""
    layout = topology.layout or layout_positions(topology.nodes or [])
    positions = layout.get("positions", {})
    rendered = []
    for node in topology.nodes or []:
        point = positions.get(node["id"], {"x": 0, "y": 0})
        rendered.append({**node, "x": point["x"], "y": point["y"]})
    return {
        "topology_id": topology.id,
        "design_id": topology.design_id,
        "width": layout.get("width", 0),
        "height": layout.get("height", 0),
        "nodes": rendered,
        "edges": topology.edges or [],
    }

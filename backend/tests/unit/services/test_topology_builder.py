"""
Unit Tests for topology building and layout
"""
from netdesigner.services.topology_builder import build_topology, layout_positions


def node_ids(nodes):
    return [node["id"] for node in nodes]


def edge_pairs(edges):
    return [(edge["from"], edge["to"]) for edge in edges]


class TestBuildTopology:

    def test_segmented_redundant_network(self):
        requirements = {
            "network_segmentation": True,
            "segments": [
                {"name": "Staff", "type": "department", "users": 40},
                {"name": "Guests", "type": "guest", "users": 10},
            ],
            "bandwidth": {"upload": 300, "download": 600},
            "redundancy": {"internet": True},
            "security_requirements": {"firewall": "basic"},
            "services": {"on_premise": ["fileserver"]},
            "ip_scheme": {"private": "10.0.0.0/8"},
        }

        nodes, edges = build_topology(requirements)

        assert node_ids(nodes) == [
            "internet",
            "router-1",
            "router-2",
            "firewall",
            "core-switch",
            "access-switch-1",
            "user-group-1",
            "access-switch-2",
            "user-group-2",
            "server-fileserver",
        ]
        assert ("router-2", "firewall") in edge_pairs(edges)
        assert ("firewall", "core-switch") in edge_pairs(edges)
        assert len(edges) == 10

        staff_switch = nodes[5]
        assert staff_switch["vlan"] == 100
        assert staff_switch["subnet"] == "10.0.0.0/26"
        assert staff_switch["level"] == 4
        # 600 Mbps needs 10G uplinks
        core_uplink = next(e for e in edges if e["to"] == "core-switch")
        assert core_uplink["bandwidth"] == "10G"

    def test_no_firewall_connects_routers_to_core(self):
        requirements = {
            "wired_users": 20,
            "bandwidth": {"upload": 50, "download": 100},
            "security_requirements": {"firewall": "none"},
        }

        nodes, edges = build_topology(requirements)

        assert "firewall" not in node_ids(nodes)
        assert ("router-1", "core-switch") in edge_pairs(edges)

    def test_flat_network_user_groups(self):
        requirements = {
            "wired_users": 20,
            "wireless_users": 0,
            "bandwidth": {"upload": 50, "download": 100},
        }

        nodes, edges = build_topology(requirements)

        assert node_ids(nodes) == [
            "internet", "router-1", "firewall", "core-switch", "access-switch-1", "wired-users",
        ]
        assert nodes[-1]["subnet"] == "192.168.0.0/27"
        assert nodes[-1]["label"] == "Wired Users (20)"
        assert edges[-1]["bandwidth"] == "1G"


class TestLayout:

    def test_one_row_per_level(self):
        nodes, _ = build_topology({"wired_users": 20, "bandwidth": {"upload": 10, "download": 10}})

        layout = layout_positions(nodes)

        assert layout["width"] == 280
        assert layout["height"] == 840
        assert layout["positions"]["internet"] == {"x": 140, "y": 60}
        assert layout["positions"]["wired-users"]["y"] == 60 + 5 * 120

    def test_nodes_spread_evenly(self):
        nodes = [
            {"id": "a", "level": 0},
            {"id": "b", "level": 1},
            {"id": "c", "level": 1},
        ]

        layout = layout_positions(nodes)

        assert layout["width"] == 440
        xs = [layout["positions"][n]["x"] for n in ("b", "c")]
        assert xs == [60 + 320 / 3, 60 + 2 * 320 / 3]

    def test_empty(self):
        assert layout_positions([])["positions"] == {}

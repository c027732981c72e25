"""
Integration Tests for the equipment catalogue and recommendations
"""
import json
import pytest
from httpx import AsyncClient


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def add_equipment(client: AsyncClient, headers: dict, system: bool = False, image: bool = False, **fields) -> dict:
    data = {
        "category": "switch",
        "manufacturer": "Aruba",
        "model": "CX 6300",
        "specs": {"ports": 48, "port_speed": "1G", "poe": True},
        "price_range": "$$",
        **fields,
    }
    files = {"image": ("switch.png", PNG, "image/png")} if image else None
    response = await client.post(
        "/api/v1/equipment/system" if system else "/api/v1/equipment/",
        data={"data": json.dumps(data)},
        files=files,
        headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_user_equipment_is_private(client: AsyncClient, auth_headers, test_user):
    created = await add_equipment(client, auth_headers, image=True)

    assert created["created_by"] == test_user.id
    assert created["is_system_owned"] is False
    assert created["display_name"] == "Aruba CX 6300"
    assert created["warranty_display"] == "No warranty"
    assert "/images/" in created["image_url"]

    own = await client.get("/api/v1/equipment/user/", headers=auth_headers)
    public = await client.get(f"/api/v1/equipment/{created['id']}")

    assert [e["id"] for e in own.json()] == [created["id"]]
    assert public.status_code == 404


@pytest.mark.asyncio
async def test_invalid_equipment_data(client: AsyncClient, auth_headers):
    not_json = await client.post("/api/v1/equipment/", data={"data": "{oops"}, headers=auth_headers)
    bad_ip = await client.post(
        "/api/v1/equipment/",
        data={"data": json.dumps({
            "category": "router", "manufacturer": "Cisco", "model": "ISR",
            "specs": {"management_ip": "300.1.1.1"},
        })},
        headers=auth_headers
    )

    assert not_json.status_code == 400
    assert bad_ip.status_code == 400
    assert "Invalid management IP address format" in bad_ip.json()["detail"][0]


@pytest.mark.asyncio
async def test_system_equipment_admin_only(client: AsyncClient, auth_headers, admin_auth_headers):
    forbidden = await client.post(
        "/api/v1/equipment/system",
        data={"data": json.dumps({"category": "switch", "manufacturer": "Aruba", "model": "CX"})},
        headers=auth_headers
    )
    created = await add_equipment(client, admin_auth_headers, system=True)

    assert forbidden.status_code == 403
    assert created["is_public"] is True
    assert created["is_system_owned"] is True


@pytest.mark.asyncio
async def test_catalogue_filters(client: AsyncClient, admin_auth_headers):
    await add_equipment(client, admin_auth_headers, system=True)
    await add_equipment(client, admin_auth_headers, system=True, manufacturer="Cisco", model="C9500",
                        specs={"ports": 48, "port_speed": "10G"})
    await add_equipment(client, admin_auth_headers, system=True, category="router", manufacturer="Juniper",
                        model="MX204", specs={"ports": 8, "port_speed": "10G"})

    everything = await client.get("/api/v1/equipment/?limit=2")
    switches = await client.get("/api/v1/equipment/category/switch")
    fast = await client.get("/api/v1/equipment/?port_speed=10G")
    cisco = await client.get("/api/v1/equipment/?manufacturer=cis")

    assert everything.json()["total"] == 3
    assert everything.json()["pages"] == 2
    assert everything.json()["count"] == 2
    assert [e["model"] for e in switches.json()] == ["CX 6300", "C9500"]
    assert {e["model"] for e in fast.json()["data"]} == {"C9500", "MX204"}
    assert [e["model"] for e in cisco.json()["data"]] == ["C9500"]


@pytest.mark.asyncio
async def test_similar_equipment(client: AsyncClient, admin_auth_headers):
    first = await add_equipment(client, admin_auth_headers, system=True)
    await add_equipment(client, admin_auth_headers, system=True, model="CX 8360")
    await add_equipment(client, admin_auth_headers, system=True, manufacturer="Cisco", model="C9300")

    response = await client.get(f"/api/v1/equipment/similar/{first['id']}")

    assert [e["model"] for e in response.json()] == ["CX 8360"]


@pytest.mark.asyncio
async def test_edit_permissions(client: AsyncClient, auth_headers, other_auth_headers, admin_auth_headers):
    own = await add_equipment(client, auth_headers)
    system = await add_equipment(client, admin_auth_headers, system=True)

    updated = await client.put(f"/api/v1/equipment/{own['id']}", json={"is_popular": True}, headers=auth_headers)
    foreign = await client.put(f"/api/v1/equipment/{own['id']}", json={"is_popular": True}, headers=other_auth_headers)
    system_edit = await client.put(f"/api/v1/equipment/{system['id']}", json={"model": "X"}, headers=auth_headers)

    assert updated.json()["is_popular"] is True
    assert foreign.status_code == 403
    assert system_edit.status_code == 403

    deleted = await client.delete(f"/api/v1/equipment/{own['id']}", headers=auth_headers)
    assert deleted.json()["message"] == "Equipment deleted successfully"


@pytest.mark.asyncio
async def test_assign_to_design(client: AsyncClient, auth_headers, design):
    equipment = await add_equipment(client, auth_headers)
    assignment = {"equipment_id": equipment["id"], "design_id": design["id"]}

    assigned = await client.post("/api/v1/equipment/assign-to-design", json=assignment, headers=auth_headers)
    assert assigned.json()["design_ids"] == [design["id"]]

    twice = await client.post("/api/v1/equipment/assign-to-design", json=assignment, headers=auth_headers)
    assert twice.status_code == 400

    listing = await client.get(f"/api/v1/equipment/design/{design['id']}", headers=auth_headers)
    assert [e["id"] for e in listing.json()] == [equipment["id"]]

    removed = await client.request(
        "DELETE", "/api/v1/equipment/remove-from-design", json=assignment, headers=auth_headers
    )
    assert removed.json()["design_ids"] == []


@pytest.mark.asyncio
async def test_cannot_assign_other_users_private_equipment(client: AsyncClient, auth_headers, other_auth_headers, design):
    equipment = await add_equipment(client, other_auth_headers)

    response = await client.post(
        "/api/v1/equipment/assign-to-design",
        json={"equipment_id": equipment["id"], "design_id": design["id"]},
        headers=auth_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_recommendations(client: AsyncClient, auth_headers, admin_auth_headers, design):
    aruba = await add_equipment(client, admin_auth_headers, system=True, model="CX 6400", price_range="$$$",
                                specs={"ports": 288, "port_speed": "1G"})
    cisco = await add_equipment(client, admin_auth_headers, system=True, manufacturer="Cisco", model="C9600",
                                price_range="$$$$", specs={"ports": 384, "port_speed": "1G"})
    await add_equipment(client, admin_auth_headers, system=True, model="CX 6100", price_range="$",
                        specs={"ports": 48, "port_speed": "1G"})
    juniper = await add_equipment(client, admin_auth_headers, system=True, category="router", manufacturer="Juniper",
                                  model="MX204", price_range="$$$", specs={"ports": 8, "port_speed": "10G"})

    response = await client.get(f"/api/v1/equipment/recommendations/{design['id']}", headers=auth_headers)

    assert response.status_code == 200
    entries = {entry["category"]: entry for entry in response.json()["recommendations"]}

    # 120 wired users: five 24-user access blocks
    assert entries["switch"]["quantity"] == 5
    assert entries["switch"]["required_ports"] == 240
    assert entries["switch"]["recommended_equipment"]["id"] == aruba["id"]
    assert [alt["id"] for alt in entries["switch"]["alternatives"]] == [cisco["id"]]

    assert entries["router"]["required_ports"] == 5
    assert entries["router"]["recommended_equipment"]["id"] == juniper["id"]
    assert entries["firewall"]["recommended_equipment"] is None

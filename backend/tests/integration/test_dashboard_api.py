"""
Integration Tests for topology visualization, the dashboard and public stats
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_generate_topology(client: AsyncClient, auth_headers, design):
    response = await client.post(f"/api/v1/visualization/{design['id']}", headers=auth_headers)

    assert response.status_code == 201
    topology = response.json()
    node_ids = [node["id"] for node in topology["nodes"]]
    assert node_ids[:4] == ["internet", "router-1", "firewall", "core-switch"]
    assert "access-switch-3" in node_ids
    assert "server-fileserver" in node_ids
    assert set(topology["layout"]["positions"]) == set(node_ids)


@pytest.mark.asyncio
async def test_regenerate_replaces_topology(client: AsyncClient, auth_headers, design):
    first = await client.post(f"/api/v1/visualization/{design['id']}", headers=auth_headers)
    second = await client.post(f"/api/v1/visualization/{design['id']}", headers=auth_headers)

    assert second.json()["id"] == first.json()["id"]


@pytest.mark.asyncio
async def test_topology_not_generated(client: AsyncClient, auth_headers, design):
    response = await client.get(f"/api/v1/visualization/{design['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_render_model(client: AsyncClient, auth_headers, other_auth_headers, design):
    topology = (await client.post(f"/api/v1/visualization/{design['id']}", headers=auth_headers)).json()

    rendered = await client.get(f"/api/v1/visualization/visualization/{topology['id']}", headers=auth_headers)
    foreign = await client.get(f"/api/v1/visualization/visualization/{topology['id']}", headers=other_auth_headers)

    assert rendered.status_code == 200
    body = rendered.json()
    assert body["design_id"] == design["id"]
    assert len(body["nodes"]) == len(topology["nodes"])
    internet = next(node for node in body["nodes"] if node["id"] == "internet")
    assert internet["y"] < next(node for node in body["nodes"] if node["id"] == "core-switch")["y"]
    assert foreign.status_code == 403


@pytest.mark.asyncio
async def test_dashboard(client: AsyncClient, test_user, auth_headers, design):
    await client.post(
        "/api/v1/users/login", json={"email": test_user.email, "password": "testpassword123"}
    )
    await client.post(f"/api/v1/visualization/{design['id']}", headers=auth_headers)
    team = (await client.post("/api/v1/teams/", json={"name": "NOC"}, headers=auth_headers)).json()
    await client.post(f"/api/v1/teams/{team['id']}/invite", json={"email": "a@example.com"}, headers=auth_headers)
    await client.post(f"/api/v1/teams/{team['id']}/invite", json={"email": "b@example.com"}, headers=auth_headers)

    response = await client.get("/api/v1/dashboard/", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["designs_created"] == 1
    assert data["stats"]["designs_visualized"] == 1
    assert data["stats"]["teams_created"] == 1
    assert data["stats"]["individuals_invited"] == 2
    assert data["stats"]["invitations_pending"] == 2
    assert data["recent_items"]["designs"][0]["display_name"] == "Head Office LAN"

    activity = data["activity_data"]
    assert len(activity["labels"]) == 30
    assert activity["sign_ins"][-1] == 1
    assert activity["designs_created"][-1] == 1
    assert sum(activity["designs_created"]) == 1


@pytest.mark.asyncio
async def test_public_stats(client: AsyncClient, db_session, design):
    response = await client.get("/api/v1/stats/")

    assert response.status_code == 200
    assert response.json() == {"users": 1, "companies": 1, "designs": 1, "reports": 0}

"""
Integration Tests for configuration templates, deployments and generated configs
"""
import json
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from netdesigner.models.equipment import Equipment, EquipmentCategory

from conftest import headers_for


TEMPLATE_PAYLOAD = {
    "name": "Access switch baseline",
    "equipment_type": "switch",
    "vendor": "Cisco",
    "model": "C9300",
    "config_type": "basic",
    "template": "hostname {{hostname}}\nvlan {{vlan_id}}\n name {{vlan_name}}",
    "variables": [
        {"name": "hostname", "description": "Device hostname", "required": True,
         "validation_regex": "[A-Za-z0-9-]+"},
        {"name": "vlan_id", "description": "Access VLAN", "required": True, "default_value": "10"},
        {"name": "vlan_name", "description": "VLAN name"},
    ],
}


@pytest.fixture
async def switch(db_session, test_user) -> Equipment:
    equipment = Equipment(
        category=EquipmentCategory.SWITCH,
        manufacturer="cisco",
        model="C9300-48P",
        specs={"ports": 48, "port_speed": "1G"},
        created_by=test_user.id,
    )
    db_session.add(equipment)
    await db_session.commit()
    return equipment


@pytest.fixture
async def template(client: AsyncClient, auth_headers) -> dict:
    response = await client.post("/api/v1/configurations/", json=TEMPLATE_PAYLOAD, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


async def reload_equipment(db_session, equipment_id: str) -> Equipment:
    result = await db_session.execute(
        select(Equipment).where(Equipment.id == equipment_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ==================== Templates ====================

@pytest.mark.asyncio
async def test_undeclared_placeholder_rejected(client: AsyncClient, auth_headers):
    payload = {**TEMPLATE_PAYLOAD, "template": "hostname {{hostname}}\nip domain-name {{domain}}"}

    response = await client.post("/api/v1/configurations/", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert response.json()["details"]["errors"] == ["Undefined variable: domain"]


@pytest.mark.asyncio
async def test_invalid_variable_name(client: AsyncClient, auth_headers):
    payload = {**TEMPLATE_PAYLOAD, "variables": [{"name": "host-name", "description": "x"}]}

    response = await client.post("/api/v1/configurations/", json=payload, headers=auth_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_template_name(client: AsyncClient, auth_headers, template):
    response = await client.post("/api/v1/configurations/", json=TEMPLATE_PAYLOAD, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_only_owner_updates_template(client: AsyncClient, other_auth_headers, admin_auth_headers, template):
    foreign = await client.put(
        f"/api/v1/configurations/{template['id']}", json={"version": "1.1.0"}, headers=other_auth_headers
    )
    admin = await client.put(
        f"/api/v1/configurations/{template['id']}", json={"version": "1.1.0"}, headers=admin_auth_headers
    )

    assert foreign.status_code == 403
    assert admin.status_code == 200
    assert admin.json()["version"] == "1.1.0"


@pytest.mark.asyncio
async def test_compatible_templates(client: AsyncClient, auth_headers, template, switch):
    await client.post(
        "/api/v1/configurations/",
        json={**TEMPLATE_PAYLOAD, "name": "Juniper baseline", "vendor": "Juniper"},
        headers=auth_headers
    )

    response = await client.get(f"/api/v1/configurations/compatible/{switch.id}", headers=auth_headers)

    assert [t["name"] for t in response.json()] == ["Access switch baseline"]


@pytest.mark.asyncio
async def test_upload_file_template(client: AsyncClient, auth_headers):
    data = {**TEMPLATE_PAYLOAD, "name": "Uploaded baseline"}
    data.pop("template")
    content = b"hostname {{hostname}}\nvlan {{vlan_id}}\n"

    response = await client.post(
        "/api/v1/configurations/upload",
        data={"data": json.dumps(data)},
        files={"file": ("baseline.txt", content, "text/plain")},
        headers=auth_headers
    )

    assert response.status_code == 201
    created = response.json()
    assert created["config_source_type"] == "file"
    assert created["template"] == content.decode()
    assert created["config_file"]["original_name"] == "baseline.txt"

    download = await client.get(f"/api/v1/configurations/{created['id']}/download", headers=auth_headers)
    assert download.content == content
    assert 'filename="baseline.txt"' in download.headers["content-disposition"]


# ==================== Deployments ====================

@pytest.mark.asyncio
async def test_deploy_and_activate(client: AsyncClient, db_session, auth_headers, template, switch):
    deployed = await client.post(
        f"/api/v1/configurations/{template['id']}/deploy",
        json={"equipment_id": switch.id, "variable_values": {"hostname": "sw-core-01"}},
        headers=auth_headers
    )

    assert deployed.status_code == 201
    deployment = deployed.json()
    assert deployment["status"] == "pending"
    assert deployment["rendered_config"] == "hostname sw-core-01\nvlan 10\n name "

    history = (await reload_equipment(db_session, switch.id)).configurations
    assert [(e["deployment_id"], e["status"], e["is_current"]) for e in history] == [
        (deployment["id"], "pending", False)
    ]

    activated = await client.patch(
        f"/api/v1/configurations/{template['id']}/deployments/{deployment['id']}",
        json={"status": "active"},
        headers=auth_headers
    )
    assert activated.json()["status"] == "active"

    history = (await reload_equipment(db_session, switch.id)).configurations
    assert history[0]["is_current"] is True

    blocked = await client.delete(f"/api/v1/configurations/{template['id']}", headers=auth_headers)
    assert blocked.status_code == 400

    listing = await client.get(f"/api/v1/configurations/devices/{switch.id}/deployments", headers=auth_headers)
    assert [d["id"] for d in listing.json()] == [deployment["id"]]


@pytest.mark.asyncio
async def test_deploy_validates_values(client: AsyncClient, auth_headers, template, switch):
    response = await client.post(
        f"/api/v1/configurations/{template['id']}/deploy",
        json={"equipment_id": switch.id, "variable_values": {"hostname": "bad name!"}},
        headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Variable 'hostname' does not match the required format"


@pytest.mark.asyncio
async def test_deploy_incompatible_equipment(client: AsyncClient, db_session, auth_headers, template):
    router = Equipment(category=EquipmentCategory.ROUTER, manufacturer="Cisco", model="ISR4331")
    db_session.add(router)
    await db_session.commit()

    response = await client.post(
        f"/api/v1/configurations/{template['id']}/deploy",
        json={"equipment_id": router.id, "variable_values": {"hostname": "edge"}},
        headers=auth_headers
    )

    assert response.status_code == 400


# ==================== Generated Configs ====================

@pytest.mark.asyncio
async def test_generate_and_manage_config(client: AsyncClient, auth_headers, other_auth_headers, template, design):
    generated = await client.post(
        "/api/v1/configurations/generate",
        json={
            "template_id": template["id"],
            "design_id": design["id"],
            "variable_values": {"hostname": "sw-access-01", "vlan_name": "STAFF"},
        },
        headers=auth_headers
    )

    assert generated.status_code == 201
    config = generated.json()
    assert config["configuration"] == "hostname sw-access-01\nvlan 10\n name STAFF"
    assert config["config_type"] == "basic"

    foreign = await client.get(f"/api/v1/generated-configs/{config['id']}", headers=other_auth_headers)
    assert foreign.status_code == 403

    regenerated = await client.post(
        f"/api/v1/generated-configs/{config['id']}/regenerate", json={}, headers=auth_headers
    )
    assert regenerated.status_code == 201
    assert regenerated.json()["configuration"] == config["configuration"]
    assert regenerated.json()["parent_config_id"] == config["id"]

    pdf = await client.get(f"/api/v1/generated-configs/{config['id']}/download", headers=auth_headers)
    assert pdf.content.startswith(b"%PDF")

    applied = await client.patch(f"/api/v1/generated-configs/{config['id']}/apply", headers=auth_headers)
    assert applied.json()["is_applied"] is True

    blocked = await client.delete(f"/api/v1/generated-configs/{config['id']}", headers=auth_headers)
    assert blocked.status_code == 400

    listing = await client.get("/api/v1/generated-configs/?applied=false", headers=auth_headers)
    assert [c["id"] for c in listing.json()] == [regenerated.json()["id"]]

    replaced = await client.post(
        f"/api/v1/generated-configs/{config['id']}/regenerate",
        json={"variable_values": {"hostname": "sw-access-02"}},
        headers=auth_headers
    )
    assert replaced.json()["configuration"] == "hostname sw-access-02\nvlan 10\n name "

    deleted = await client.delete(f"/api/v1/generated-configs/{regenerated.json()['id']}", headers=auth_headers)
    assert deleted.status_code == 204


@pytest.mark.asyncio
async def test_generate_requires_subscription(client: AsyncClient, expired_trial_user, template, design):
    response = await client.post(
        "/api/v1/configurations/generate",
        json={"template_id": template["id"], "design_id": design["id"], "variable_values": {"hostname": "x"}},
        headers=headers_for(expired_trial_user)
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Subscription inactive"


@pytest.mark.asyncio
async def test_generate_missing_required_value(client: AsyncClient, auth_headers, template, design):
    response = await client.post(
        "/api/v1/configurations/generate",
        json={"template_id": template["id"], "design_id": design["id"]},
        headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["details"]["errors"] == ["Variable 'hostname' is required"]

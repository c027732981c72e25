"""
Integration Tests for network designs and reports
"""
import pytest
from httpx import AsyncClient

from conftest import headers_for, make_user


@pytest.mark.asyncio
async def test_create_design(client: AsyncClient, auth_headers, design_payload):
    response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["design"]["design_name"] == "Head Office LAN"
    assert data["design"]["design_status"] == "draft"
    assert data["design"]["version"] == 1
    assert data["limit_info"] == {"current": 1, "limit": 5, "remaining": 4}


@pytest.mark.asyncio
async def test_create_design_fills_requirement_defaults(client: AsyncClient, auth_headers):
    payload = {
        "design_name": "Tiny office",
        "requirements": {"total_users": "1-50", "bandwidth": {"upload": 10, "download": 50}},
    }

    response = await client.post("/api/v1/networkdesign/", json=payload, headers=auth_headers)

    requirements = response.json()["design"]["requirements"]
    assert requirements["security_requirements"]["firewall"] == "basic"
    assert requirements["ip_scheme"]["private"] == "192.168.0.0/16"
    assert requirements["segments"] == []


@pytest.mark.asyncio
async def test_segments_require_segmentation(client: AsyncClient, auth_headers, design_payload):
    design_payload["requirements"]["network_segmentation"] = False

    response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=auth_headers)

    assert response.status_code == 400
    errors = response.json()["details"]["errors"]
    assert any(e.startswith("requirements:") and "Segments must be empty" in e for e in errors)


@pytest.mark.asyncio
async def test_design_name_too_short(client: AsyncClient, auth_headers, design_payload):
    design_payload["design_name"] = "  ab  "

    response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert any("Design name must be at least 3 characters" in e for e in response.json()["details"]["errors"])


@pytest.mark.asyncio
async def test_design_validation_reports_every_error(client: AsyncClient, auth_headers, design_payload):
    design_payload["design_name"] = "x"
    design_payload["requirements"]["total_users"] = "9999"

    response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=auth_headers)

    assert response.status_code == 400
    errors = response.json()["details"]["errors"]
    assert len(errors) == 2
    assert errors[0].startswith("design_name:")
    assert errors[1].startswith("requirements.total_users:")


@pytest.mark.asyncio
async def test_plan_design_limit(client: AsyncClient, db_session, basic_plan, design_payload):
    user = await make_user(db_session, subscription_plan_id=basic_plan.id)
    headers = headers_for(user)

    for _ in range(2):
        response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=headers)
        assert response.status_code == 201

    response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"]["limit"] == 2
    assert response.json()["detail"]["current"] == 2


@pytest.mark.asyncio
async def test_archived_designs_free_quota(client: AsyncClient, db_session, basic_plan, design_payload):
    user = await make_user(db_session, subscription_plan_id=basic_plan.id)
    headers = headers_for(user)
    first = (await client.post("/api/v1/networkdesign/", json=design_payload, headers=headers)).json()
    await client.post("/api/v1/networkdesign/", json=design_payload, headers=headers)

    await client.put(f"/api/v1/networkdesign/{first['design']['id']}/archive", headers=headers)
    response = await client.post("/api/v1/networkdesign/", json=design_payload, headers=headers)

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_expired_trial_without_plan(client: AsyncClient, expired_trial_user, design_payload):
    response = await client.post(
        "/api/v1/networkdesign/", json=design_payload, headers=headers_for(expired_trial_user)
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "No active subscription plan found"


@pytest.mark.asyncio
async def test_list_hides_archived(client: AsyncClient, auth_headers, design):
    await client.put(f"/api/v1/networkdesign/{design['id']}/archive", headers=auth_headers)

    active = await client.get("/api/v1/networkdesign/", headers=auth_headers)
    everything = await client.get("/api/v1/networkdesign/?include_archived=true", headers=auth_headers)

    assert active.json() == []
    assert len(everything.json()) == 1
    assert everything.json()[0]["design_status"] == "archived"


@pytest.mark.asyncio
async def test_update_bumps_revision(client: AsyncClient, auth_headers, design):
    response = await client.put(
        f"/api/v1/networkdesign/{design['id']}",
        json={"design_name": "Head Office LAN v2", "design_status": "in_progress"},
        headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["design_name"] == "Head Office LAN v2"
    assert response.json()["design_status"] == "in_progress"
    assert response.json()["version"] == 2


@pytest.mark.asyncio
async def test_other_users_design_is_not_found(client: AsyncClient, other_auth_headers, design):
    response = await client.get(f"/api/v1/networkdesign/{design['id']}", headers=other_auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_design_report(client: AsyncClient, auth_headers, design):
    response = await client.post(f"/api/v1/networkdesign/{design['id']}/report", headers=auth_headers)

    assert response.status_code == 201
    content = response.json()["content"]
    assert [vlan["vlan_id"] for vlan in content["network"]["vlan_scheme"]] == [100, 101, 102]
    assert content["summary"]["total_hosts"] == 192


@pytest.mark.asyncio
async def test_report_for_archived_design_rejected(client: AsyncClient, auth_headers, design):
    await client.put(f"/api/v1/networkdesign/{design['id']}/archive", headers=auth_headers)

    response = await client.post(f"/api/v1/networkdesign/{design['id']}/report", headers=auth_headers)

    assert response.status_code == 400


# ==================== Reports API ====================

@pytest.mark.asyncio
async def test_full_and_professional_reports(client: AsyncClient, auth_headers, design):
    full = await client.post(f"/api/v1/report/full/{design['id']}", headers=auth_headers)
    professional = await client.post(f"/api/v1/report/prof/{design['id']}", headers=auth_headers)

    assert full.status_code == 201
    assert full.json()["format"] == "json"
    assert professional.status_code == 201
    assert professional.json()["report_type"] == "professional"
    assert professional.json()["download_url"].endswith(".pdf")

    listing = await client.get("/api/v1/report/user", headers=auth_headers)
    assert len(listing.json()) == 2
    assert listing.json()[0]["design_name"] == "Head Office LAN"

    download = await client.get(f"/api/v1/report/{professional.json()['id']}/download", headers=auth_headers)
    assert download.status_code == 200
    assert download.headers["content-type"] == "application/pdf"
    assert download.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_json_report_has_no_pdf(client: AsyncClient, auth_headers, design):
    full = await client.post(f"/api/v1/report/full/{design['id']}", headers=auth_headers)

    response = await client.get(f"/api/v1/report/{full.json()['id']}/download", headers=auth_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_report_of_other_user_forbidden(client: AsyncClient, auth_headers, other_auth_headers, design):
    report = (await client.post(f"/api/v1/report/full/{design['id']}", headers=auth_headers)).json()

    response = await client.get(f"/api/v1/report/{report['id']}", headers=other_auth_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_template_report(client: AsyncClient, auth_headers, design):
    template = await client.post(
        "/api/v1/report-templates/",
        json={
            "name": "Board summary",
            "category": "executive",
            "supported_formats": ["pdf", "html"],
            "sections": [
                {"title": "Overview", "key": "overview",
                 "content_template": "<p>{{ design.design_name }}: {{ summary.complexity }}</p>"},
                {"title": "Budget", "key": "budget",
                 "content_template": "<p>{{ summary.estimated_cost.range.low | currency }}</p>", "page_break": True},
            ],
        },
        headers=auth_headers
    )
    assert template.status_code == 201

    response = await client.post(
        "/api/v1/report/template",
        json={"design_id": design["id"], "template_id": template.json()["id"], "format": "html"},
        headers=auth_headers
    )

    assert response.status_code == 201
    report = response.json()
    assert report["report_type"] == "custom"
    assert report["metadata"] == {"version": "1.0.0", "generated_by": "user"}
    assert report["content"]["sections"][0]["content"] == "<p>Head Office LAN: High</p>"
    assert report["content"]["sections"][1]["content"] == "<p>$18,000</p>"

    unsupported = await client.post(
        "/api/v1/report/template",
        json={"design_id": design["id"], "template_id": template.json()["id"], "format": "docx"},
        headers=auth_headers
    )
    assert unsupported.status_code == 400


@pytest.mark.asyncio
async def test_report_download_with_non_ascii_name(client: AsyncClient, auth_headers, design_payload):
    design_payload["design_name"] = "Réseau 北京 Office"
    created = await client.post("/api/v1/networkdesign/", json=design_payload, headers=auth_headers)
    design_id = created.json()["design"]["id"]

    report = (await client.post(f"/api/v1/report/prof/{design_id}", headers=auth_headers)).json()
    download = await client.get(f"/api/v1/report/{report['id']}/download", headers=auth_headers)

    assert download.status_code == 200
    assert download.content.startswith(b"%PDF")
    disposition = download.headers["content-disposition"]
    assert f'filename="report-{report["id"]}.pdf"' in disposition
    assert "filename*=UTF-8''" in disposition
    assert "R%C3%A9seau" in disposition

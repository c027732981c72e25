"""
Integration Tests for teams, members and invitations
"""
import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient
from sqlalchemy import select

from netdesigner.models.team import Invitation
from netdesigner.models.notification import Notification


async def create_team(client: AsyncClient, headers: dict, name: str = "Core Network") -> dict:
    response = await client.post(
        "/api/v1/teams/", json={"name": name, "description": "Campus rollout"}, headers=headers
    )
    assert response.status_code == 201
    return response.json()


async def invitation_for(db_session, email: str) -> Invitation:
    result = await db_session.execute(
        select(Invitation)
        .where(Invitation.email == email.lower())
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_create_team_makes_creator_owner(client: AsyncClient, test_user, auth_headers):
    team = await create_team(client, auth_headers)

    assert team["created_by"] == test_user.id
    assert len(team["members"]) == 1
    assert team["members"][0]["role"] == "owner"
    assert team["members"][0]["user"]["email"] == test_user.email


@pytest.mark.asyncio
async def test_team_visible_to_members_only(client: AsyncClient, auth_headers, other_auth_headers):
    team = await create_team(client, auth_headers)

    listing = await client.get("/api/v1/teams/", headers=auth_headers)
    outsider = await client.get(f"/api/v1/teams/{team['id']}", headers=other_auth_headers)

    assert [t["id"] for t in listing.json()] == [team["id"]]
    assert outsider.status_code == 403


@pytest.mark.asyncio
async def test_add_and_remove_member(client: AsyncClient, auth_headers, other_user):
    team = await create_team(client, auth_headers)

    added = await client.post(
        f"/api/v1/teams/{team['id']}/members",
        json={"user_id": other_user.id, "role": "admin"},
        headers=auth_headers
    )
    assert added.status_code == 200
    assert {m["user_id"]: m["role"] for m in added.json()["members"]}[other_user.id] == "admin"

    duplicate = await client.post(
        f"/api/v1/teams/{team['id']}/members", json={"user_id": other_user.id}, headers=auth_headers
    )
    assert duplicate.status_code == 400

    removed = await client.delete(f"/api/v1/teams/{team['id']}/members/{other_user.id}", headers=auth_headers)
    assert removed.status_code == 200
    assert len(removed.json()["members"]) == 1


@pytest.mark.asyncio
async def test_owner_cannot_remove_themselves(client: AsyncClient, test_user, auth_headers):
    team = await create_team(client, auth_headers)

    response = await client.delete(f"/api/v1/teams/{team['id']}/members/{test_user.id}", headers=auth_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_only_owner_deletes_team(client: AsyncClient, auth_headers, other_user, other_auth_headers):
    team = await create_team(client, auth_headers)
    await client.post(
        f"/api/v1/teams/{team['id']}/members",
        json={"user_id": other_user.id, "role": "admin"},
        headers=auth_headers
    )

    by_admin = await client.delete(f"/api/v1/teams/{team['id']}", headers=other_auth_headers)
    by_owner = await client.delete(f"/api/v1/teams/{team['id']}", headers=auth_headers)

    assert by_admin.status_code == 403
    assert by_owner.status_code == 200
    assert (await client.get(f"/api/v1/teams/{team['id']}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_member_cannot_update_team(client: AsyncClient, auth_headers, other_user, other_auth_headers):
    team = await create_team(client, auth_headers)
    await client.post(
        f"/api/v1/teams/{team['id']}/members", json={"user_id": other_user.id}, headers=auth_headers
    )

    response = await client.put(f"/api/v1/teams/{team['id']}", json={"name": "Renamed"}, headers=other_auth_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_invite_and_accept(client: AsyncClient, db_session, auth_headers, other_user, other_auth_headers):
    team = await create_team(client, auth_headers)

    response = await client.post(
        f"/api/v1/teams/{team['id']}/invite",
        json={"email": other_user.email.upper(), "role": "viewer"},
        headers=auth_headers
    )
    assert response.status_code == 201
    assert response.json()["email"] == other_user.email
    assert response.json()["status"] == "pending"
    assert "token" not in response.json()

    pending = await client.get("/api/v1/invitations/", headers=other_auth_headers)
    assert len(pending.json()) == 1

    notifications = (await db_session.execute(
        select(Notification).where(Notification.recipient_id == other_user.id)
    )).scalars().all()
    assert [n.title for n in notifications] == ["Team invitation"]

    invitation = await invitation_for(db_session, other_user.email)
    accepted = await client.post("/api/v1/invitations/accept", json={"token": invitation.token}, headers=other_auth_headers)

    assert accepted.status_code == 200
    roles = {m["user_id"]: m["role"] for m in accepted.json()["members"]}
    assert roles[other_user.id] == "member"

    again = await client.post("/api/v1/teams/accept-invite", json={"token": invitation.token}, headers=other_auth_headers)
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_pending_invitation(client: AsyncClient, auth_headers):
    team = await create_team(client, auth_headers)
    payload = {"email": "new.engineer@example.com"}

    first = await client.post(f"/api/v1/teams/{team['id']}/invite", json=payload, headers=auth_headers)
    second = await client.post(f"/api/v1/teams/{team['id']}/invite", json=payload, headers=auth_headers)

    assert first.status_code == 201
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_declined_invitation_can_be_renewed(client: AsyncClient, db_session, auth_headers, other_user, other_auth_headers):
    team = await create_team(client, auth_headers)
    payload = {"email": other_user.email}
    await client.post(f"/api/v1/teams/{team['id']}/invite", json=payload, headers=auth_headers)
    first_token = (await invitation_for(db_session, other_user.email)).token

    declined = await client.post("/api/v1/teams/decline-invite", json={"token": first_token}, headers=other_auth_headers)
    assert declined.json()["message"] == "Invitation declined"

    renewed = await client.post(f"/api/v1/teams/{team['id']}/invite", json=payload, headers=auth_headers)

    assert renewed.status_code == 201
    assert renewed.json()["status"] == "pending"
    assert (await invitation_for(db_session, other_user.email)).token != first_token


@pytest.mark.asyncio
async def test_expired_invitation(client: AsyncClient, db_session, auth_headers, other_user, other_auth_headers):
    team = await create_team(client, auth_headers)
    await client.post(f"/api/v1/teams/{team['id']}/invite", json={"email": other_user.email}, headers=auth_headers)

    invitation = await invitation_for(db_session, other_user.email)
    invitation.expires_at = datetime.utcnow() - timedelta(days=1)
    await db_session.commit()

    response = await client.post("/api/v1/invitations/accept", json={"token": invitation.token}, headers=other_auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invitation has expired"
    assert (await invitation_for(db_session, other_user.email)).status.value == "expired"


@pytest.mark.asyncio
async def test_invite_existing_member_rejected(client: AsyncClient, test_user, auth_headers):
    team = await create_team(client, auth_headers)

    response = await client.post(
        "/api/v1/invitations/",
        json={"team_id": team["id"], "email": test_user.email},
        headers=auth_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cancel_and_resend_invitation(client: AsyncClient, auth_headers):
    team = await create_team(client, auth_headers)
    sent = (await client.post(
        f"/api/v1/teams/{team['id']}/invite", json={"email": "ops@example.com"}, headers=auth_headers
    )).json()

    resent = await client.post(f"/api/v1/teams/invitations/{sent['id']}/resend", headers=auth_headers)
    assert resent.status_code == 200

    listing = await client.get("/api/v1/teams/invitations/sent", headers=auth_headers)
    assert [i["id"] for i in listing.json()] == [sent["id"]]

    cancelled = await client.delete(f"/api/v1/teams/invitations/{sent['id']}", headers=auth_headers)
    assert cancelled.json()["message"] == "Invitation cancelled"
    assert (await client.get("/api/v1/teams/invitations/sent", headers=auth_headers)).json() == []


@pytest.mark.asyncio
async def test_team_designs(client: AsyncClient, auth_headers, other_auth_headers, design):
    team = await create_team(client, auth_headers)

    assigned = await client.post(
        f"/api/v1/teams/{team['id']}/designs", json={"design_id": design["id"]}, headers=auth_headers
    )
    assert assigned.status_code == 200
    assert assigned.json()["design_ids"] == [design["id"]]

    again = await client.post(
        f"/api/v1/teams/{team['id']}/designs", json={"design_id": design["id"]}, headers=auth_headers
    )
    assert again.status_code == 400

    designs = await client.get(f"/api/v1/teams/{team['id']}/designs", headers=auth_headers)
    assert [d["id"] for d in designs.json()] == [design["id"]]

    removed = await client.delete(f"/api/v1/teams/{team['id']}/designs/{design['id']}", headers=auth_headers)
    assert removed.json()["design_ids"] == []


@pytest.mark.asyncio
async def test_cannot_assign_foreign_design(client: AsyncClient, auth_headers, other_auth_headers, design):
    team = await create_team(client, other_auth_headers)

    response = await client.post(
        f"/api/v1/teams/{team['id']}/designs", json={"design_id": design["id"]}, headers=other_auth_headers
    )

    assert response.status_code == 404

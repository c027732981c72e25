"""
Integration Tests for sharing, comments and design versions
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from netdesigner.models.notification import Notification, NotificationType


async def notifications_of(db_session, user_id: str):
    result = await db_session.execute(
        select(Notification).where(Notification.recipient_id == user_id).order_by(Notification.created_at)
    )
    return result.scalars().all()


async def share(client: AsyncClient, headers: dict, design_id: str, user_id: str, permission: str = "view"):
    return await client.post(
        "/api/v1/collaboration/share",
        json={"design_id": design_id, "user_id": user_id, "permission": permission},
        headers=headers
    )


# ==================== Sharing ====================

@pytest.mark.asyncio
async def test_share_grants_access(client: AsyncClient, db_session, auth_headers, other_user, other_auth_headers, design):
    before = await client.get(f"/api/v1/collaboration/comments/{design['id']}", headers=other_auth_headers)
    assert before.status_code == 403

    response = await share(client, auth_headers, design["id"], other_user.id)

    assert response.status_code == 201
    assert response.json()["permission"] == "view"
    after = await client.get(f"/api/v1/collaboration/comments/{design['id']}", headers=other_auth_headers)
    assert after.status_code == 200

    notifications = await notifications_of(db_session, other_user.id)
    assert [n.type for n in notifications] == [NotificationType.DESIGN_SHARED]


@pytest.mark.asyncio
async def test_reshare_changes_access_level(client: AsyncClient, db_session, auth_headers, other_user, design):
    first = await share(client, auth_headers, design["id"], other_user.id, "view")
    second = await share(client, auth_headers, design["id"], other_user.id, "edit")

    assert second.json()["id"] == first.json()["id"]
    assert second.json()["permission"] == "edit"

    notifications = await notifications_of(db_session, other_user.id)
    assert notifications[-1].type == NotificationType.ACCESS_LEVEL_CHANGED
    assert notifications[-1].data["previous_permission"] == "view"


@pytest.mark.asyncio
async def test_share_validation(client: AsyncClient, test_user, auth_headers, design):
    no_target = await client.post(
        "/api/v1/collaboration/share", json={"design_id": design["id"]}, headers=auth_headers
    )
    with_self = await share(client, auth_headers, design["id"], test_user.id)

    assert no_target.status_code == 400
    assert with_self.status_code == 400


@pytest.mark.asyncio
async def test_only_owner_shares(client: AsyncClient, auth_headers, other_user, other_auth_headers, admin_user, design):
    await share(client, auth_headers, design["id"], other_user.id, "edit")

    response = await share(client, other_auth_headers, design["id"], admin_user.id)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_revoke_share(client: AsyncClient, auth_headers, other_user, other_auth_headers, design):
    created = (await share(client, auth_headers, design["id"], other_user.id)).json()

    listing = await client.get(f"/api/v1/collaboration/shares/{design['id']}", headers=auth_headers)
    assert [s["id"] for s in listing.json()] == [created["id"]]

    revoked = await client.delete(f"/api/v1/collaboration/shares/{created['id']}", headers=auth_headers)
    assert revoked.json()["message"] == "Share removed"

    response = await client.get(f"/api/v1/collaboration/comments/{design['id']}", headers=other_auth_headers)
    assert response.status_code == 403


# ==================== Comments ====================

@pytest.mark.asyncio
async def test_comment_thread(client: AsyncClient, db_session, test_user, auth_headers, other_user, other_auth_headers, design):
    await share(client, auth_headers, design["id"], other_user.id, "comment")

    comment = await client.post(
        "/api/v1/collaboration/comments",
        json={"design_id": design["id"], "content": "Should guests share the core switch?"},
        headers=other_auth_headers
    )
    assert comment.status_code == 201
    comment_id = comment.json()["id"]

    reply = await client.post(
        f"/api/v1/collaboration/comments/{comment_id}/reply",
        json={"content": "They get their own VLAN"},
        headers=auth_headers
    )
    assert reply.status_code == 201
    assert [r["content"] for r in reply.json()["replies"]] == ["They get their own VLAN"]

    liked = await client.patch(f"/api/v1/collaboration/comments/{comment_id}/like", headers=auth_headers)
    assert liked.json()["likes"] == [test_user.id]
    unliked = await client.patch(f"/api/v1/collaboration/comments/{comment_id}/like", headers=auth_headers)
    assert unliked.json()["likes"] == []

    owner_types = [n.type for n in await notifications_of(db_session, test_user.id)]
    author_types = [n.type for n in await notifications_of(db_session, other_user.id)]
    assert owner_types == [NotificationType.COMMENT_ADDED]
    assert NotificationType.COMMENT_REPLY in author_types
    assert author_types.count(NotificationType.COMMENT_LIKE) == 1


@pytest.mark.asyncio
async def test_tagged_users_notified(client: AsyncClient, db_session, auth_headers, other_user, design):
    response = await client.post(
        "/api/v1/collaboration/comments",
        json={"design_id": design["id"], "content": "Please review", "tagged_users": [other_user.id, "missing-user"]},
        headers=auth_headers
    )

    assert response.status_code == 201
    notifications = await notifications_of(db_session, other_user.id)
    assert [n.type for n in notifications] == [NotificationType.COMMENT_TAG]


# ==================== Versions ====================

@pytest.mark.asyncio
async def test_version_lifecycle(client: AsyncClient, auth_headers, design):
    first = await client.post(f"/api/v1/designs/{design['id']}/versions", json={}, headers=auth_headers)
    assert first.status_code == 201
    assert first.json()["version"] == "1.0.0"
    assert first.json()["changes"] == []

    unchanged = await client.post(f"/api/v1/designs/{design['id']}/versions", json={}, headers=auth_headers)
    assert unchanged.status_code == 400

    await client.put(
        f"/api/v1/networkdesign/{design['id']}", json={"design_name": "Head Office LAN v2"}, headers=auth_headers
    )
    second = await client.post(
        f"/api/v1/designs/{design['id']}/versions", json={"bump": "major", "notes": "Renamed"}, headers=auth_headers
    )
    assert second.json()["version"] == "2.0.0"
    assert second.json()["parent_version_id"] == first.json()["id"]
    assert [c["path"] for c in second.json()["changes"]] == ["design_name"]

    compared = await client.get(
        f"/api/v1/versions/compare?v1={first.json()['id']}&v2={second.json()['id']}", headers=auth_headers
    )
    assert compared.json()["summary"] == {"high": 0, "medium": 0, "low": 1}

    listing = await client.get(f"/api/v1/designs/{design['id']}/versions", headers=auth_headers)
    assert [v["version"] for v in listing.json()] == ["2.0.0", "1.0.0"]

    published = await client.patch(f"/api/v1/versions/{second.json()['id']}/publish", headers=auth_headers)
    assert published.json()["is_published"] is True
    again = await client.patch(f"/api/v1/versions/{second.json()['id']}/publish", headers=auth_headers)
    assert again.status_code == 400

    restored = await client.post(f"/api/v1/versions/{first.json()['id']}/restore", headers=auth_headers)
    assert restored.json()["design_name"] == "Head Office LAN"


@pytest.mark.asyncio
async def test_versions_require_access(client: AsyncClient, auth_headers, other_auth_headers, design):
    version = (await client.post(f"/api/v1/designs/{design['id']}/versions", json={}, headers=auth_headers)).json()

    response = await client.get(f"/api/v1/versions/{version['id']}", headers=other_auth_headers)

    assert response.status_code == 403

"""
Integration Tests for in-app notifications
"""
import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient

from netdesigner.core.exceptions import ValidationError
from netdesigner.models.notification import NotificationType
from netdesigner.services.notification_service import build_notification, notify


@pytest.fixture
async def notifications(db_session, test_user, other_user):
    """Two unread notifications for test_user, one expired, one for someone else"""
    notify(
        db_session, test_user.id, NotificationType.DESIGN_UPDATED,
        "Design updated", "Head Office LAN changed", sender_id=other_user.id,
    )
    notify(
        db_session, test_user.id, NotificationType.DESIGN_SHARED,
        "Design shared", "A design was shared with you",
        metadata={"design_id": "d-1", "design_name": "Branch WAN"},
    )
    expired = notify(db_session, test_user.id, NotificationType.DESIGN_UPDATED, "Old", "Old news")
    expired.expires_at = datetime.utcnow() - timedelta(minutes=1)
    notify(db_session, other_user.id, NotificationType.DESIGN_UPDATED, "Not yours", "Hidden")
    await db_session.commit()


@pytest.mark.asyncio
async def test_list_excludes_expired_and_foreign(client: AsyncClient, auth_headers, notifications):
    response = await client.get("/api/v1/notifications/", headers=auth_headers)

    assert response.status_code == 200
    assert {n["title"] for n in response.json()} == {"Design updated", "Design shared"}


@pytest.mark.asyncio
async def test_filter_by_type(client: AsyncClient, auth_headers, notifications):
    response = await client.get("/api/v1/notifications/?type=design_shared", headers=auth_headers)

    assert len(response.json()) == 1
    assert response.json()[0]["metadata"] == {"design_id": "d-1", "design_name": "Branch WAN"}


@pytest.mark.asyncio
async def test_mark_read_and_unread_count(client: AsyncClient, auth_headers, notifications):
    assert (await client.get("/api/v1/notifications/unread-count", headers=auth_headers)).json() == {"count": 2}

    first = (await client.get("/api/v1/notifications/", headers=auth_headers)).json()[0]
    marked = await client.patch(f"/api/v1/notifications/{first['id']}/read", headers=auth_headers)

    assert marked.json()["read"] is True
    assert marked.json()["read_at"] is not None
    assert (await client.get("/api/v1/notifications/unread-count", headers=auth_headers)).json() == {"count": 1}

    everything = await client.patch("/api/v1/notifications/mark-all-read", headers=auth_headers)
    assert everything.json()["updated"] == 1

    unread = await client.get("/api/v1/notifications/?read=false", headers=auth_headers)
    assert unread.json() == []


@pytest.mark.asyncio
async def test_delete_notification(client: AsyncClient, auth_headers, other_auth_headers, notifications):
    first = (await client.get("/api/v1/notifications/", headers=auth_headers)).json()[0]

    foreign = await client.delete(f"/api/v1/notifications/{first['id']}", headers=other_auth_headers)
    own = await client.delete(f"/api/v1/notifications/{first['id']}", headers=auth_headers)

    assert foreign.status_code == 404
    assert own.status_code == 204
    assert len((await client.get("/api/v1/notifications/", headers=auth_headers)).json()) == 1


def test_share_notifications_require_design_metadata():
    with pytest.raises(ValidationError) as exc_info:
        build_notification("user-1", NotificationType.DESIGN_SHARED, "Shared", "x", metadata={"design_id": "d-1"})

    assert exc_info.value.details["errors"] == ["Missing metadata: design_name"]

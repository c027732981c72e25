"""
Unit Tests for the realtime collaboration manager
"""
from unittest.mock import AsyncMock

from netdesigner.services.websocket_manager import (
    CollaborationManager,
    SocketConnection,
    EventType,
    room_name,
)


def fake_socket():
    socket = AsyncMock()
    socket.sent = []
    socket.send_json.side_effect = lambda message: socket.sent.append(message)
    return socket


def types_sent(socket):
    return [message["type"] for message in socket.sent]


class TestRateLimit:

    def test_sliding_window(self):
        connection = SocketConnection(websocket=None, user_id="u1", user_name="Ada")

        assert all(connection.allow_event(3, now=t) for t in (0.0, 1.0, 2.0))
        assert connection.allow_event(3, now=30.0) is False
        # the first event leaves the window after 60 seconds
        assert connection.allow_event(3, now=60.0) is True
        assert connection.allow_event(3, now=60.5) is False


class TestCollaborationManager:

    async def test_connect_sends_connected(self):
        manager = CollaborationManager(events_per_minute=10)
        socket = fake_socket()

        await manager.connect(socket, "u1", "Ada")

        socket.accept.assert_awaited_once()
        assert types_sent(socket) == ["connected"]

    async def test_join_teams_announces_to_room(self):
        manager = CollaborationManager()
        first, second = fake_socket(), fake_socket()
        ada = await manager.connect(first, "u1", "Ada")
        bob = await manager.connect(second, "u2", "Bob")

        await manager.join_teams(ada, ["t1"])
        joined = await manager.join_teams(bob, ["t1"])

        assert joined == ["t1"]
        assert manager.room_members(room_name("t1")) == {ada.connection_id, bob.connection_id}
        assert types_sent(first)[-1] == EventType.MEMBER_JOINED.value
        assert first.sent[-1]["data"]["user_id"] == "u2"
        assert EventType.MEMBER_JOINED.value not in types_sent(second)

    async def test_design_update_reaches_team_but_not_sender(self):
        manager = CollaborationManager()
        first, second = fake_socket(), fake_socket()
        ada = await manager.connect(first, "u1", "Ada")
        bob = await manager.connect(second, "u2", "Bob")
        await manager.join_teams(ada, ["t1"])
        await manager.join_teams(bob, ["t1"])

        await manager.design_update(ada, "t1", "d1", {"design_name": "New"})

        assert second.sent[-1]["type"] == "designUpdate"
        assert second.sent[-1]["data"] == {"design_id": "d1", "changes": {"design_name": "New"}, "updated_by": "u1"}
        assert "designUpdate" not in types_sent(first)

    async def test_design_lock_events(self):
        manager = CollaborationManager()
        first, second = fake_socket(), fake_socket()
        ada = await manager.connect(first, "u1", "Ada")
        bob = await manager.connect(second, "u2", "Bob")
        await manager.join_teams(ada, ["t1"])
        await manager.join_teams(bob, ["t1"])

        await manager.design_lock(ada, "t1", "d1", True)
        await manager.design_lock(ada, "t1", "d1", False)

        assert types_sent(second)[-2:] == ["design_locked", "design_unlocked"]

    async def test_disconnect_leaves_rooms(self):
        manager = CollaborationManager()
        first, second = fake_socket(), fake_socket()
        ada = await manager.connect(first, "u1", "Ada")
        bob = await manager.connect(second, "u2", "Bob")
        await manager.join_teams(ada, ["t1"])
        await manager.join_teams(bob, ["t1"])

        await manager.disconnect(ada)

        assert manager.room_members(room_name("t1")) == {bob.connection_id}
        assert second.sent[-1]["type"] == "member_left"

    async def test_dead_socket_is_dropped(self):
        manager = CollaborationManager()
        first, second = fake_socket(), fake_socket()
        ada = await manager.connect(first, "u1", "Ada")
        bob = await manager.connect(second, "u2", "Bob")
        await manager.join_teams(ada, ["t1"])
        await manager.join_teams(bob, ["t1"])
        second.send_json.side_effect = RuntimeError("closed")

        delivered = await manager.broadcast(room_name("t1"), EventType.PONG, {})

        assert delivered == 1
        assert manager.room_members(room_name("t1")) == {ada.connection_id}

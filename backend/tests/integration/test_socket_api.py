"""
Integration Tests for the realtime collaboration socket

The endpoint is driven with a scripted socket so frames can be fed one by one.
"""
import json
import pytest
from unittest.mock import AsyncMock

from netdesigner.api.v1.endpoints.ws import collaboration_websocket
from netdesigner.core.security import build_token_pair


def scripted_socket(*frames):
    socket = AsyncMock()
    socket.sent = []
    socket.send_json.side_effect = lambda message: socket.sent.append(message)
    socket.receive.side_effect = [
        {"type": "websocket.receive", "bytes": frame} if isinstance(frame, bytes)
        else {"type": "websocket.receive", "text": frame}
        for frame in frames
    ] + [{"type": "websocket.disconnect", "code": 1000}]
    return socket


def types_sent(socket):
    return [message["type"] for message in socket.sent]


@pytest.mark.asyncio
async def test_ping_and_disconnect(test_user):
    socket = scripted_socket(json.dumps({"type": "ping"}))

    await collaboration_websocket(socket, token=build_token_pair(test_user)["access_token"])

    assert types_sent(socket) == ["connected", "pong"]
    socket.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_binary_frame_closes_with_unsupported_data(test_user):
    socket = scripted_socket(b"\x00\x01", json.dumps({"type": "ping"}))

    await collaboration_websocket(socket, token=build_token_pair(test_user)["access_token"])

    socket.close.assert_awaited_once_with(code=1003, reason="Binary frames are not supported")
    assert types_sent(socket) == ["connected"]


@pytest.mark.asyncio
async def test_malformed_messages_answered_with_errors(test_user):
    socket = scripted_socket(
        "{not json",
        json.dumps(["ping"]),
        json.dumps({"type": "joinTeams", "data": ["t1"]}),
        json.dumps({"type": "designLock", "data": {}}),
    )

    await collaboration_websocket(socket, token=build_token_pair(test_user)["access_token"])

    errors = [m["data"]["message"] for m in socket.sent if m["type"] == "socket_error"]
    assert errors == ["Invalid JSON message", "Invalid JSON message", "design_id is required"]


@pytest.mark.asyncio
async def test_invalid_token_rejected():
    socket = scripted_socket()

    await collaboration_websocket(socket, token="not-a-token")

    socket.accept.assert_not_awaited()
    assert socket.close.await_args.kwargs["code"] == 4001

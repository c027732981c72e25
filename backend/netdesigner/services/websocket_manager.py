"""
Realtime Collaboration Manager

Tracks authenticated socket connections and the team rooms they joined:
- joinTeams: subscribe to `team_{id}` rooms and announce presence
- designUpdate: relay design changes to the design's team room
- designLock: relay lock/unlock of a design

Each connection is rate limited to SOCKET_EVENTS_PER_MINUTE events.
"""

import asyncio
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Set, Optional, Any, Iterable, Deque

from fastapi import WebSocket

from netdesigner.core.config import settings
from netdesigner.core.logging_config import logger


class EventType(str, Enum):
    """Server event types"""
    CONNECTED = "connected"
    PONG = "pong"
    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
    DESIGN_UPDATE = "designUpdate"
    DESIGN_LOCKED = "design_locked"
    DESIGN_UNLOCKED = "design_unlocked"
    SOCKET_ERROR = "socket_error"


RATE_WINDOW_SECONDS = 60


def room_name(team_id: str) -> str:
    return f"team_{team_id}"


@dataclass
class SocketConnection:
    """One authenticated socket"""
    websocket: WebSocket
    user_id: str
    user_name: str
    connection_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    rooms: Set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=datetime.utcnow)
    events: Deque[float] = field(default_factory=deque)

    def allow_event(self, limit: int, now: Optional[float] = None) -> bool:
        """Sliding one-minute window"""
        now = time.monotonic() if now is None else now
        while self.events and now - self.events[0] >= RATE_WINDOW_SECONDS:
            self.events.popleft()
        if len(self.events) >= limit:
            return False
        self.events.append(now)
        return True


class CollaborationManager:
    """Connection registry plus room broadcasting"""

    def __init__(self, events_per_minute: Optional[int] = None):
        self.events_per_minute = events_per_minute or settings.SOCKET_EVENTS_PER_MINUTE
        # connection_id -> connection
        self._connections: Dict[str, SocketConnection] = {}
        # room -> connection ids
        self._rooms: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str, user_name: str) -> SocketConnection:
        await websocket.accept()
        connection = SocketConnection(websocket=websocket, user_id=user_id, user_name=user_name)
        async with self._lock:
            self._connections[connection.connection_id] = connection
        logger.info(f"[Socket] User {user_id} connected ({connection.connection_id})")
        await self.send(connection, EventType.CONNECTED, {"user_id": user_id})
        return connection

    async def disconnect(self, connection: SocketConnection) -> None:
        async with self._lock:
            self._connections.pop(connection.connection_id, None)
            rooms = list(connection.rooms)
            for room in rooms:
                members = self._rooms.get(room)
                if members is None:
                    continue
                members.discard(connection.connection_id)
                if not members:
                    del self._rooms[room]
        logger.info(f"[Socket] User {connection.user_id} disconnected ({connection.connection_id})")

        for room in rooms:
            await self.broadcast(room, EventType.MEMBER_LEFT, {"user_id": connection.user_id})

    def room_members(self, room: str) -> Set[str]:
        return set(self._rooms.get(room, set()))

    # ==================== Sending ====================

    async def send(self, connection: SocketConnection, event_type: EventType, data: Dict[str, Any]) -> bool:
        message = {
            "type": event_type.value,
            "data": data,
            "timestamp": datetime.utcnow().isoformat(),
        }
        try:
            await connection.websocket.send_json(message)
            return True
        except (RuntimeError, ConnectionError) as e:
            logger.error(f"[Socket] Send to {connection.connection_id} failed: {e}")
            return False

    async def send_error(self, connection: SocketConnection, message: str) -> None:
        await self.send(connection, EventType.SOCKET_ERROR, {"message": message})

    async def broadcast(
        self,
        room: str,
        event_type: EventType,
        data: Dict[str, Any],
        exclude: Optional[str] = None,
    ) -> int:
        """Send to every connection in a room; returns the number delivered"""
        return await self._deliver(self.room_members(room), event_type, data, exclude)

    async def send_to_user(
        self,
        user_id: str,
        event_type: EventType,
        data: Dict[str, Any],
        exclude: Optional[str] = None,
    ) -> int:
        """Send to every open connection of a user"""
        ids = {cid for cid, conn in self._connections.items() if conn.user_id == user_id}
        return await self._deliver(ids, event_type, data, exclude)

    async def _deliver(self, ids: Iterable[str], event_type, data, exclude: Optional[str]) -> int:
        dead = []
        delivered = 0
        for connection_id in ids:
            if connection_id == exclude:
                continue
            connection = self._connections.get(connection_id)
            if connection is None:
                continue
            if await self.send(connection, event_type, data):
                delivered += 1
            else:
                dead.append(connection)
        for connection in dead:
            await self.disconnect(connection)
        return delivered

    # ==================== Client events ====================

    async def join_teams(self, connection: SocketConnection, team_ids: Iterable[str]) -> list:
        joined = []
        async with self._lock:
            for team_id in team_ids:
                room = room_name(team_id)
                self._rooms.setdefault(room, set()).add(connection.connection_id)
                connection.rooms.add(room)
                joined.append(str(team_id))

        for team_id in joined:
            await self.broadcast(
                room_name(team_id),
                EventType.MEMBER_JOINED,
                {"user_id": connection.user_id, "user_name": connection.user_name, "team_id": team_id},
                exclude=connection.connection_id,
            )
        return joined

    async def design_update(
        self,
        connection: SocketConnection,
        team_id: Optional[str],
        design_id: str,
        changes: Dict[str, Any],
    ) -> None:
        payload = {"design_id": design_id, "changes": changes, "updated_by": connection.user_id}
        if team_id:
            await self.broadcast(
                room_name(team_id), EventType.DESIGN_UPDATE, payload, exclude=connection.connection_id
            )
        # The sender's other tabs see their own edits too
        await self.send_to_user(
            connection.user_id, EventType.DESIGN_UPDATE, payload, exclude=connection.connection_id
        )

    async def design_lock(
        self,
        connection: SocketConnection,
        team_id: Optional[str],
        design_id: str,
        locked: bool,
    ) -> None:
        event_type = EventType.DESIGN_LOCKED if locked else EventType.DESIGN_UNLOCKED
        payload = {"design_id": design_id, "user_id": connection.user_id, "locked": locked}
        if team_id:
            await self.broadcast(room_name(team_id), event_type, payload, exclude=connection.connection_id)
        await self.send_to_user(connection.user_id, event_type, payload, exclude=connection.connection_id)


collaboration_manager = CollaborationManager()

"""
Realtime Collaboration WebSocket Endpoint

Connection URL: WS /api/v1/ws?token=<jwt>

Message format (send):
{
    "type": "event_type",
    "data": { ... }
}

Supported client events:
- ping: keep-alive, answered with pong
- joinTeams: { team_ids?: [...] } join the rooms of the user's teams
- designUpdate: { design_id, changes }
- designLock: { design_id, locked }

Server events:
- connected, pong
- member_joined / member_left
- designUpdate, design_locked / design_unlocked
- socket_error
"""

import json
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from netdesigner.core.database import get_session_local
from netdesigner.core.logging_config import logger
from netdesigner.models.design import NetworkDesign
from netdesigner.models.team import TeamDesign
from netdesigner.modules.auth.dependencies import load_user_from_token, user_can_access_design
from netdesigner.services.notification_service import user_team_ids
from netdesigner.services.websocket_manager import collaboration_manager, EventType, SocketConnection


router = APIRouter()


async def design_team_id(db: AsyncSession, design: NetworkDesign) -> Optional[str]:
    """Team room a design's events go to"""
    if design.team_id:
        return str(design.team_id)
    result = await db.execute(select(TeamDesign.team_id).where(TeamDesign.design_id == design.id).limit(1))
    team_id = result.scalar_one_or_none()
    return str(team_id) if team_id else None


async def load_design_for(db: AsyncSession, connection: SocketConnection, design_id: Optional[str]) -> Optional[NetworkDesign]:
    if not design_id:
        await collaboration_manager.send_error(connection, "design_id is required")
        return None
    design = await db.get(NetworkDesign, design_id)
    if not design or not await user_can_access_design(db, design, connection.user_id):
        await collaboration_manager.send_error(connection, "Design not found or access denied")
        return None
    return design


async def handle_event(db: AsyncSession, connection: SocketConnection, event_type: str, event_data: dict) -> None:
    if event_type == "ping":
        await collaboration_manager.send(connection, EventType.PONG, {})

    elif event_type == "joinTeams":
        team_ids = await user_team_ids(db, connection.user_id)
        requested = event_data.get("team_ids")
        if requested:
            team_ids = [t for t in team_ids if str(t) in {str(r) for r in requested}]
        joined = await collaboration_manager.join_teams(connection, [str(t) for t in team_ids])
        logger.info(f"[Socket] User {connection.user_id} joined {len(joined)} team rooms")

    elif event_type == "designUpdate":
        design = await load_design_for(db, connection, event_data.get("design_id"))
        if design:
            await collaboration_manager.design_update(
                connection, await design_team_id(db, design), str(design.id), event_data.get("changes") or {}
            )

    elif event_type == "designLock":
        design = await load_design_for(db, connection, event_data.get("design_id"))
        if design:
            await collaboration_manager.design_lock(
                connection, await design_team_id(db, design), str(design.id), bool(event_data.get("locked", True))
            )

    else:
        logger.debug(f"[Socket] Unknown event type: {event_type}")
        await collaboration_manager.send_error(connection, f"Unknown event type: {event_type}")


class UnsupportedFrame(Exception):
    """Client sent a binary frame"""


async def receive_event(websocket: WebSocket) -> Optional[dict]:
    """Next text frame as a dict; None for anything that is not a JSON object.

    Binary frames raise UnsupportedFrame.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    if message.get("text") is None:
        raise UnsupportedFrame()
    try:
        payload = json.loads(message["text"])
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


@router.websocket("/ws")
async def collaboration_websocket(websocket: WebSocket, token: str = Query("")):
    async with get_session_local()() as db:
        try:
            user = await load_user_from_token(token, db)
        except HTTPException as e:
            await websocket.close(code=4001, reason=str(e.detail))
            return
        user_id = str(user.id)
        user_name = user.name or user.email

    connection = await collaboration_manager.connect(
        websocket=websocket,
        user_id=user_id,
        user_name=user_name,
    )

    try:
        while True:
            try:
                message = await receive_event(websocket)
            except UnsupportedFrame:
                await websocket.close(code=1003, reason="Binary frames are not supported")
                break

            if message is None:
                await collaboration_manager.send_error(connection, "Invalid JSON message")
                continue

            if not connection.allow_event(collaboration_manager.events_per_minute):
                await collaboration_manager.send_error(connection, "Rate limit exceeded")
                continue

            event_type = message.get("type") or ""
            event_data = message.get("data")
            if not isinstance(event_data, dict):
                event_data = {}

            async with get_session_local()() as db:
                try:
                    await handle_event(db, connection, str(event_type), event_data)
                except WebSocketDisconnect:
                    raise
                except Exception as e:
                    logger.error(f"[Socket] Handler for '{event_type}' failed: {e}", exc_info=True)
                    await db.rollback()
                    await collaboration_manager.send_error(connection, f"Failed to handle {event_type}")

    except WebSocketDisconnect:
        logger.info(f"[Socket] User {user_id} disconnected")
    finally:
        await collaboration_manager.disconnect(connection)

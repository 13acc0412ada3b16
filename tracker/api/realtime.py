import json
import logging
from typing import Optional, Tuple

import jwt
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from tracker.api.deps import get_connections
from tracker.core.config import Settings, get_app_settings
from tracker.core.enums import AdminRole
from tracker.core.security import decode_access_token
from tracker.db.mongo import ADMINS
from tracker.db.session import get_db
from tracker.realtime import events
from tracker.realtime.connections import (
    MODERATOR,
    USER,
    ConnectionRegistry,
    moderator_identity,
    user_identity,
)
from tracker.repositories.accounts import AdminRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


class AuthFailed(Exception):
    pass


async def _authenticate(data: dict, db, settings: Settings) -> Optional[Tuple[str, str]]:
    """(identity, role) for an auth frame, None when the frame is incomplete."""
    token = data.get("token")
    if not token:
        return None

    try:
        claims = decode_access_token(token, settings)
    except jwt.InvalidTokenError as exc:
        raise AuthFailed("Authentication failed: Invalid token") from exc

    if data.get("role") == "admin":
        admin = await AdminRepository(db[ADMINS]).get(claims.get("adminId"))
        if not admin or admin.get("role") not in {r.value for r in AdminRole}:
            raise AuthFailed("Authentication failed: Insufficient privileges")
        return moderator_identity(admin["_id"]), MODERATOR

    user_id = data.get("userId")
    if not user_id:
        return None
    if claims.get("userId") != user_id:
        raise AuthFailed("Authentication failed: User ID mismatch")
    return user_identity(user_id), USER


@router.websocket("/ws")
async def tracker_socket(
    websocket: WebSocket,
    db=Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    connections: ConnectionRegistry = Depends(get_connections),
):
    # Accept first; identity arrives in the first {"type": "auth"} frame.
    await websocket.accept()
    identity = None
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                try:
                    raw = (message.get("bytes") or b"").decode("utf-8")
                except UnicodeDecodeError:
                    logger.debug("Ignoring undecodable binary frame")
                    continue
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Ignoring non-JSON frame")
                continue
            if not isinstance(data, dict) or data.get("type") != events.AUTH:
                continue

            try:
                result = await _authenticate(data, db, settings)
            except AuthFailed as exc:
                logger.warning("Socket authentication rejected: %s", exc)
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
                return
            if result is None:
                continue

            new_identity, role = result
            if identity and identity != new_identity:
                connections.unregister(identity, websocket)
            identity = new_identity
            connections.register(identity, websocket, role)
            logger.info("Socket authenticated as %s (%s)", identity, role)
            await websocket.send_json(events.auth_accepted(identity, role))
    except WebSocketDisconnect:
        pass
    finally:
        if identity and connections.unregister(identity, websocket):
            logger.info("Socket for %s disconnected", identity)

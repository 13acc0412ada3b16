"""
Registry of live push channels keyed by authenticated identity.

One registry is built per application (see ``tracker.main.create_app``)
and handed to services through ``app.state``.  Each identity owns at most
one channel: a reconnect replaces the previous entry, and a push that
fails is logged and dropped.  Clients re-fetch full state on reconnect,
so nothing is queued or replayed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from starlette.websockets import WebSocket

logger = logging.getLogger(__name__)

USER = "user"
MODERATOR = "moderator"


def user_identity(user_id) -> str:
    return str(user_id)


def moderator_identity(admin_id) -> str:
    return f"admin:{admin_id}"


@dataclass
class Channel:
    identity: str
    websocket: WebSocket
    role: str = USER


class ConnectionRegistry:
    def __init__(self):
        self._channels: Dict[str, Channel] = {}

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, identity: str) -> bool:
        return identity in self._channels

    def get(self, identity: str) -> Optional[Channel]:
        return self._channels.get(identity)

    def register(self, identity: str, websocket: WebSocket, role: str = USER) -> Optional[Channel]:
        """Bind ``identity`` to ``websocket``; returns the channel it replaced."""
        previous = self._channels.get(identity)
        self._channels[identity] = Channel(identity, websocket, role)
        if previous is not None and previous.websocket is not websocket:
            logger.info("Channel for %s replaced by a newer connection", identity)
        return previous

    def unregister(self, identity: str, websocket: WebSocket) -> bool:
        # a stale socket closing must not evict the connection that replaced it
        current = self._channels.get(identity)
        if current is None or current.websocket is not websocket:
            return False
        del self._channels[identity]
        return True

    async def _push(self, channel: Channel, message: Dict[str, Any]) -> bool:
        try:
            await channel.websocket.send_json(message)
        except Exception as exc:
            logger.warning(
                "Dropped %s push to %s: %s", message.get("type"), channel.identity, exc
            )
            return False
        return True

    async def send(self, identity: str, message: Dict[str, Any]) -> bool:
        channel = self._channels.get(identity)
        if channel is None:
            return False
        return await self._push(channel, message)

    async def send_to_user(self, user_id, message: Dict[str, Any]) -> bool:
        return await self.send(user_identity(user_id), message)

    async def send_to_moderators(self, message: Dict[str, Any]) -> int:
        moderators = [c for c in self._channels.values() if c.role == MODERATOR]
        sent = 0
        for channel in moderators:
            if await self._push(channel, message):
                sent += 1
        return sent

    async def close_all(self, code: int = 1001) -> None:
        channels = list(self._channels.values())
        self._channels.clear()
        for channel in channels:
            try:
                await channel.websocket.close(code=code)
            except RuntimeError:
                # already closed by the peer
                pass

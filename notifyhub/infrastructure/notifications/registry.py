"""Connection registry for notification websockets."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import Any, DefaultDict, Protocol


logger = logging.getLogger(__name__)


class JsonSocket(Protocol):
    """The part of :class:`fastapi.WebSocket` the registry relies on."""

    async def send_json(self, data: Any) -> None: ...


class ConnectionRegistry:
    """Track live websocket sessions grouped by user.

    A user may hold several sessions at once (tabs, devices). The user is
    online while at least one session remains registered.
    """

    def __init__(self) -> None:
        self._connections: DefaultDict[int, dict[str, JsonSocket]] = defaultdict(dict)

    async def connect(self, user_id: int, websocket: Any) -> str:
        """Accept ``websocket`` and register it under a new session id."""

        await websocket.accept()
        session_id = uuid.uuid4().hex
        self.add_connection(user_id, session_id, websocket)
        return session_id

    def add_connection(self, user_id: int, session_id: str, socket: JsonSocket) -> None:
        self._connections[user_id][session_id] = socket
        logger.info(
            "User %s connected (%s), %s active session(s)",
            user_id,
            session_id,
            self.connection_count(user_id),
        )

    def remove_connection(self, user_id: int, session_id: str) -> None:
        """Remove ``session_id`` from the pool for ``user_id``."""

        sessions = self._connections.get(user_id)
        if sessions is None:
            return
        sessions.pop(session_id, None)
        if not sessions:
            self._connections.pop(user_id, None)
        logger.info("User %s disconnected (%s)", user_id, session_id)

    def is_online(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def connection_count(self, user_id: int) -> int:
        return len(self._connections.get(user_id, {}))

    def connected_users_count(self) -> int:
        return len(self._connections)

    def connection_status(self, user_id: int) -> dict[str, Any]:
        count = self.connection_count(user_id)
        return {"online": count > 0, "connections": count}

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int:
        """Send ``message`` to every session of ``user_id``.

        Returns how many sessions received it. Sessions whose send fails are
        dropped from the registry.
        """

        delivered = 0
        for session_id, socket in list(self._connections.get(user_id, {}).items()):
            try:
                await socket.send_json(message)
            except Exception:
                logger.warning(
                    "Dropping session %s of user %s after failed send",
                    session_id,
                    user_id,
                    exc_info=True,
                )
                self.remove_connection(user_id, session_id)
                continue
            delivered += 1
        return delivered


__all__ = ["ConnectionRegistry", "JsonSocket"]

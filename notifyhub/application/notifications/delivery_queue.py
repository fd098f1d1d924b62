"""In-memory queue of notifications waiting for offline users."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import DefaultDict, Deque

from notifyhub.domain.entities import Notification


class DeliveryQueue:
    """Hold notifications per user until their next connection.

    Insertion order is delivery order. There is no capacity bound, so a user
    who never reconnects keeps accumulating entries until the process
    restarts.
    """

    def __init__(self) -> None:
        self._pending: DefaultDict[int, Deque[Notification]] = defaultdict(deque)

    def enqueue(self, user_id: int, notification: Notification) -> None:
        self._pending[user_id].append(notification)

    def flush(self, user_id: int) -> list[Notification]:
        """Return every queued notification for ``user_id`` and clear them."""

        queued = self._pending.pop(user_id, None)
        return list(queued) if queued else []

    def restore(self, user_id: int, notifications: list[Notification]) -> None:
        """Put ``notifications`` back ahead of anything queued since the flush."""

        if notifications:
            self._pending[user_id].extendleft(reversed(notifications))

    def pending(self, user_id: int) -> int:
        queued = self._pending.get(user_id)
        return len(queued) if queued else 0

    def total_pending(self) -> int:
        return sum(len(queued) for queued in self._pending.values())


__all__ = ["DeliveryQueue"]

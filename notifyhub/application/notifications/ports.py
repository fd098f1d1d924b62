"""Collaborator contracts consumed by the notification use cases.

The dispatcher depends only on these protocols so tests can substitute fakes
and a shared external store can replace the database-backed implementations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence

from notifyhub.domain.entities import (
    Notification,
    NotificationFilters,
    NotificationPreferences,
    User,
)


class NotificationStore(Protocol):
    """Persisted-notification collaborator."""

    def create(self, notification: Notification) -> Notification: ...

    def get(self, notification_id: int) -> Notification | None: ...

    def find_by_user(
        self, user_id: int, filters: NotificationFilters
    ) -> Sequence[Notification]: ...

    def count_for_user(self, user_id: int, filters: NotificationFilters) -> int: ...

    def count_unread(self, user_id: int) -> int: ...

    def list_unread(self, user_id: int, *, limit: int) -> Sequence[Notification]: ...

    def mark_read(self, notification_id: int, *, user_id: int) -> Notification | None: ...

    def mark_all_read(self, user_id: int) -> int: ...

    def delete(self, notification_id: int, *, user_id: int) -> bool: ...

    def delete_for_user(self, user_id: int) -> int: ...

    def delete_expired(self, *, now: datetime, read_before: datetime) -> int: ...


class UserDirectory(Protocol):
    """User-directory collaborator resolving ids and roles to recipients."""

    def get_user(self, user_id: int) -> User | None: ...

    def list_user_ids(self, *, role: str | None = None) -> Sequence[int]: ...

    def update_preferences(
        self, user_id: int, preferences: NotificationPreferences
    ) -> NotificationPreferences: ...


class PushChannel(Protocol):
    """Real-time transport keyed by user id."""

    def is_online(self, user_id: int) -> bool: ...

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int: ...


class NotificationEmailSender(Protocol):
    async def send_notification_email(
        self, to: str, notification: Notification
    ) -> bool: ...


__all__ = [
    "NotificationEmailSender",
    "NotificationStore",
    "PushChannel",
    "UserDirectory",
]

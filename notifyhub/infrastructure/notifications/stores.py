"""Database-backed collaborators for the notification dispatcher.

Each call opens its own session so the stores can be shared by the
dispatcher, websocket handlers and the cleanup loop.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.domain.entities import (
    Notification,
    NotificationFilters,
    NotificationPreferences,
    User,
)
from notifyhub.infrastructure.repositories import NotificationRepository, UserRepository

SessionFactory = Callable[[], Session]


class DatabaseNotificationStore:
    """Notification store backed by :class:`NotificationRepository`."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def create(self, notification: Notification) -> Notification:
        with self._session_factory() as session:
            return NotificationRepository(session).create(notification)

    def get(self, notification_id: int) -> Notification | None:
        with self._session_factory() as session:
            return NotificationRepository(session).get(notification_id)

    def find_by_user(
        self, user_id: int, filters: NotificationFilters
    ) -> Sequence[Notification]:
        with self._session_factory() as session:
            return NotificationRepository(session).find_by_user(user_id, filters)

    def count_for_user(self, user_id: int, filters: NotificationFilters) -> int:
        with self._session_factory() as session:
            return NotificationRepository(session).count_for_user(user_id, filters)

    def count_unread(self, user_id: int) -> int:
        with self._session_factory() as session:
            return NotificationRepository(session).count_unread(user_id)

    def list_unread(self, user_id: int, *, limit: int = 5) -> Sequence[Notification]:
        with self._session_factory() as session:
            return NotificationRepository(session).list_unread(user_id, limit=limit)

    def mark_read(self, notification_id: int, *, user_id: int) -> Notification | None:
        with self._session_factory() as session:
            return NotificationRepository(session).mark_read(notification_id, user_id=user_id)

    def mark_all_read(self, user_id: int) -> int:
        with self._session_factory() as session:
            return NotificationRepository(session).mark_all_read(user_id)

    def delete(self, notification_id: int, *, user_id: int) -> bool:
        with self._session_factory() as session:
            return NotificationRepository(session).delete(notification_id, user_id=user_id)

    def delete_for_user(self, user_id: int) -> int:
        with self._session_factory() as session:
            return NotificationRepository(session).delete_for_user(user_id)

    def delete_expired(self, *, now: datetime, read_before: datetime) -> int:
        with self._session_factory() as session:
            return NotificationRepository(session).delete_expired(
                now=now, read_before=read_before
            )


class DatabaseUserDirectory:
    """User directory backed by :class:`UserRepository`."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get_user(self, user_id: int) -> User | None:
        with self._session_factory() as session:
            return UserRepository(session).get(user_id)

    def list_user_ids(self, *, role: str | None = None) -> Sequence[int]:
        with self._session_factory() as session:
            return UserRepository(session).list_ids(role=role)

    def update_preferences(
        self, user_id: int, preferences: NotificationPreferences
    ) -> NotificationPreferences:
        with self._session_factory() as session:
            return UserRepository(session).update_preferences(user_id, preferences)


__all__ = ["DatabaseNotificationStore", "DatabaseUserDirectory", "SessionFactory"]

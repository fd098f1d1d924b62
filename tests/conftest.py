"""Shared fixtures and in-memory collaborators for the test-suite."""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_PROVIDER"] = "none"

import pytest
from sqlalchemy.orm import Session

from notifyhub.domain.entities import (
    EmailMessage,
    Notification,
    NotificationFilters,
    NotificationPreferences,
    Role,
    User,
)
from notifyhub.infrastructure.email import EmailService, MailTransportError
from notifyhub.infrastructure.notifications import ConnectionRegistry


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class InMemoryNotificationStore:
    """Notification store keeping records in a list."""

    def __init__(self) -> None:
        self.records: list[Notification] = []
        self.fail_with: Exception | None = None
        self._next_id = 1

    def create(self, notification: Notification) -> Notification:
        if self.fail_with is not None:
            raise self.fail_with
        stored = replace(notification, id=self._next_id)
        self._next_id += 1
        self.records.append(stored)
        return stored

    def get(self, notification_id: int) -> Notification | None:
        return next((n for n in self.records if n.id == notification_id), None)

    def _matching(self, user_id: int, filters: NotificationFilters) -> list[Notification]:
        matching = [
            n
            for n in self.records
            if n.user_id == user_id
            and (not filters.unread_only or not n.read)
            and (filters.type is None or n.type == filters.type)
            and (filters.priority is None or n.priority == filters.priority)
        ]
        return sorted(matching, key=lambda n: n.id, reverse=True)

    def find_by_user(self, user_id: int, filters: NotificationFilters) -> list[Notification]:
        matching = self._matching(user_id, filters)
        return matching[filters.offset : filters.offset + filters.limit]

    def count_for_user(self, user_id: int, filters: NotificationFilters) -> int:
        return len(self._matching(user_id, filters))

    def count_unread(self, user_id: int) -> int:
        return sum(1 for n in self.records if n.user_id == user_id and not n.read)

    def list_unread(self, user_id: int, *, limit: int = 5) -> list[Notification]:
        return self._matching(user_id, NotificationFilters(unread_only=True))[:limit]

    def mark_read(self, notification_id: int, *, user_id: int) -> Notification | None:
        notification = self.get(notification_id)
        if notification is None or notification.user_id != user_id:
            return None
        notification.read = True
        return notification

    def mark_all_read(self, user_id: int) -> int:
        changed = 0
        for notification in self.records:
            if notification.user_id == user_id and not notification.read:
                notification.read = True
                changed += 1
        return changed

    def delete(self, notification_id: int, *, user_id: int) -> bool:
        notification = self.get(notification_id)
        if notification is None or notification.user_id != user_id:
            return False
        self.records.remove(notification)
        return True

    def delete_for_user(self, user_id: int) -> int:
        before = len(self.records)
        self.records = [n for n in self.records if n.user_id != user_id]
        return before - len(self.records)

    def delete_expired(self, *, now: datetime, read_before: datetime) -> int:
        before = len(self.records)
        self.records = [
            n
            for n in self.records
            if not (n.expires_at is not None and n.expires_at < now)
            and not (n.read and n.created_at is not None and n.created_at < read_before)
        ]
        return before - len(self.records)


class InMemoryUserDirectory:
    """User directory backed by a dictionary of :class:`User` objects."""

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.fail_lookups = False
        self.lookups = 0

    def add(
        self,
        user_id: int,
        *,
        email: str | None = None,
        role: str = "member",
        preferences: NotificationPreferences | None = None,
    ) -> User:
        user = User(
            id=user_id,
            role=Role(id=1 if role == "admin" else 2, name=role.title(), alias=role),
            name=f"User {user_id}",
            email=email,
            notification_preferences=preferences,
        )
        self.users[user_id] = user
        return user

    def get_user(self, user_id: int) -> User | None:
        self.lookups += 1
        if self.fail_lookups:
            raise RuntimeError("directory unavailable")
        return self.users.get(user_id)

    def list_user_ids(self, *, role: str | None = None) -> Sequence[int]:
        return [
            user.id
            for user in self.users.values()
            if user.is_active and (role is None or user.has_role(role))
        ]

    def update_preferences(
        self, user_id: int, preferences: NotificationPreferences
    ) -> NotificationPreferences:
        self.users[user_id].notification_preferences = preferences
        return preferences


class RecordingEmailSender:
    """Collects notification emails instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, Notification]] = []

    async def send_notification_email(self, to: str, notification: Notification) -> bool:
        self.sent.append((to, notification))
        return True


class FakeWebSocket:
    """Stand-in for a websocket that records every JSON payload sent to it."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.accepted = False
        self.fail = fail

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [message for message in self.sent if message.get("type") == event_type]


class FakeTransport:
    """Mail transport that records messages and can be told to fail."""

    name = "fake"

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.messages: list[EmailMessage] = []
        self.verified = 0

    async def verify(self) -> None:
        self.verified += 1
        if self.fail:
            raise MailTransportError("handshake refused")

    async def send(self, message: EmailMessage) -> str | None:
        if self.fail:
            raise MailTransportError("connection refused")
        self.messages.append(message)
        return f"<message-{len(self.messages)}@test>"


@pytest.fixture
def store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def directory() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def make_socket():
    def _make(*, fail: bool = False) -> FakeWebSocket:
        return FakeWebSocket(fail=fail)

    return _make


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def email_service(transport: FakeTransport) -> EmailService:
    return EmailService(
        transport,
        default_sender="noreply@example.com",
        app_name="Project Nexus",
        frontend_url="https://app.example.com/",
        queue_interval=0,
    )


@pytest.fixture
def db_session() -> Iterator[Session]:
    """Yield a session on a freshly created SQLite schema."""

    from notifyhub.infrastructure import database

    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.initialize_database()
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)

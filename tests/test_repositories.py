"""Tests for the SQLAlchemy repositories and database-backed stores."""

from __future__ import annotations

from datetime import timedelta

import pytest

from notifyhub.domain.entities import (
    ChannelPreferences,
    Notification,
    NotificationFilters,
    NotificationPreferences,
    NotificationPriority,
    NotificationType,
    User,
)
from notifyhub.infrastructure.database import SessionLocal
from notifyhub.infrastructure.notifications.stores import (
    DatabaseNotificationStore,
    DatabaseUserDirectory,
)
from notifyhub.infrastructure.repositories import (
    NotificationRepository,
    RoleRepository,
    UserRepository,
)
from notifyhub.utils import now_in_app_timezone


@pytest.fixture
def users(db_session):
    roles = RoleRepository(db_session)
    admin_role = roles.get_or_create(name="Administrator", alias="admin")
    member_role = roles.get_or_create(name="Member", alias="member")
    repository = UserRepository(db_session)
    admin = repository.create(
        User(id=None, role=admin_role, name="Ada", email="ada@example.com")
    )
    member = repository.create(
        User(id=None, role=member_role, name="Max", email="max@example.com")
    )
    return admin, member


def _notification(user_id: int, **overrides) -> Notification:
    values = {
        "id": None,
        "user_id": user_id,
        "type": NotificationType.TASK_ASSIGNED,
        "title": "New task assigned",
        "message": "Body",
        "metadata": {"task_id": "t-1"},
    }
    values.update(overrides)
    return Notification(**values)


def test_create_and_read_back_notification(db_session, users):
    admin, _ = users
    repository = NotificationRepository(db_session)

    created = repository.create(
        _notification(admin.id, priority=NotificationPriority.URGENT, link="/tasks/t-1")
    )
    fetched = repository.get(created.id)

    assert fetched is not None
    assert fetched.priority is NotificationPriority.URGENT
    assert fetched.metadata == {"task_id": "t-1"}
    assert fetched.link == "/tasks/t-1"
    assert fetched.read is False
    assert fetched.created_at is not None and fetched.created_at.tzinfo is not None


def test_find_by_user_filters_and_orders_newest_first(db_session, users):
    admin, member = users
    repository = NotificationRepository(db_session)
    base = now_in_app_timezone()
    for offset in range(3):
        repository.create(
            _notification(
                admin.id, title=f"n{offset}", created_at=base + timedelta(minutes=offset)
            )
        )
    repository.create(
        _notification(
            admin.id,
            type=NotificationType.SYSTEM_ALERT,
            title="alert",
            created_at=base + timedelta(minutes=10),
        )
    )
    repository.create(_notification(member.id))

    newest = repository.find_by_user(admin.id, NotificationFilters(limit=2))
    alerts = repository.find_by_user(
        admin.id, NotificationFilters(type=NotificationType.SYSTEM_ALERT)
    )

    assert [n.title for n in newest] == ["alert", "n2"]
    assert [n.title for n in alerts] == ["alert"]
    assert repository.count_for_user(admin.id, NotificationFilters()) == 4
    assert repository.count_unread(member.id) == 1


def test_mark_read_respects_ownership(db_session, users):
    admin, member = users
    repository = NotificationRepository(db_session)
    created = repository.create(_notification(admin.id))

    assert repository.mark_read(created.id, user_id=member.id) is None
    assert repository.mark_read(created.id, user_id=admin.id).read is True


def test_mark_all_read_twice_changes_nothing_the_second_time(db_session, users):
    admin, _ = users
    repository = NotificationRepository(db_session)
    for _ in range(3):
        repository.create(_notification(admin.id))

    assert repository.mark_all_read(admin.id) == 3
    assert repository.mark_all_read(admin.id) == 0
    assert repository.count_unread(admin.id) == 0


def test_delete_expired_keeps_recent_and_unread(db_session, users):
    admin, _ = users
    repository = NotificationRepository(db_session)
    now = now_in_app_timezone()
    repository.create(_notification(admin.id, expires_at=now - timedelta(hours=1)))
    repository.create(
        _notification(admin.id, read=True, created_at=now - timedelta(days=45))
    )
    kept_unread = repository.create(
        _notification(admin.id, created_at=now - timedelta(days=45))
    )
    kept_fresh = repository.create(_notification(admin.id, expires_at=now + timedelta(days=3)))

    deleted = repository.delete_expired(now=now, read_before=now - timedelta(days=30))

    assert deleted == 2
    remaining = repository.find_by_user(admin.id, NotificationFilters())
    assert {n.id for n in remaining} == {kept_unread.id, kept_fresh.id}


def test_delete_and_delete_for_user(db_session, users):
    admin, member = users
    repository = NotificationRepository(db_session)
    first = repository.create(_notification(admin.id))
    repository.create(_notification(admin.id))
    repository.create(_notification(member.id))

    assert repository.delete(first.id, user_id=member.id) is False
    assert repository.delete(first.id, user_id=admin.id) is True
    assert repository.delete_for_user(admin.id) == 1
    assert repository.count_unread(member.id) == 1


def test_user_preferences_round_trip(db_session, users):
    _, member = users
    repository = UserRepository(db_session)

    assert repository.get(member.id).notification_preferences is None

    stored = repository.update_preferences(
        member.id,
        NotificationPreferences(email=ChannelPreferences(task_due=False, team_activity=True)),
    )

    reloaded = repository.get(member.id).notification_preferences
    assert stored == reloaded
    assert reloaded.email.task_due is False
    assert reloaded.email.team_activity is True


def test_list_ids_filters_by_role(db_session, users):
    admin, member = users
    repository = UserRepository(db_session)

    assert repository.list_ids() == [admin.id, member.id]
    assert repository.list_ids(role="ADMIN") == [admin.id]


def test_get_by_email_returns_user_with_role(db_session, users):
    _, member = users
    repository = UserRepository(db_session)

    found = repository.get_by_email("max@example.com")

    assert found is not None
    assert found.id == member.id
    assert found.role.alias == "member"
    assert repository.get_by_email("nobody@example.com") is None


def test_database_stores_open_their_own_sessions(db_session, users):
    admin, _ = users
    store = DatabaseNotificationStore(SessionLocal)
    directory = DatabaseUserDirectory(SessionLocal)

    created = store.create(_notification(admin.id))

    assert store.count_unread(admin.id) == 1
    assert [n.id for n in store.list_unread(admin.id, limit=5)] == [created.id]
    assert directory.get_user(admin.id).email == "ada@example.com"
    assert directory.list_user_ids(role="member") == [users[1].id]

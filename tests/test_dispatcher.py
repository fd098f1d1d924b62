"""Tests for notification fan-out through the dispatcher."""

from __future__ import annotations

import pytest

from notifyhub.application.notifications import (
    NotificationDispatcher,
    NotificationPersistenceError,
)
from notifyhub.domain.entities import (
    ChannelPreferences,
    NotificationPreferences,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
    RealTimePreferences,
)

pytestmark = pytest.mark.anyio


@pytest.fixture
def dispatcher(store, directory, registry, email_sender) -> NotificationDispatcher:
    return NotificationDispatcher(
        store=store,
        directory=directory,
        push_channel=registry,
        email_sender=email_sender,
    )


def _request(recipients, **overrides) -> NotificationRequest:
    values = {
        "recipients": recipients,
        "type": NotificationType.TASK_ASSIGNED,
        "title": "New task assigned",
        "message": "You have been assigned 'Write docs'.",
        "priority": NotificationPriority.HIGH,
    }
    values.update(overrides)
    return NotificationRequest(**values)


async def test_each_recipient_gets_an_independent_record(dispatcher, directory, store):
    for user_id in (1, 2, 3):
        directory.add(user_id)

    created = await dispatcher.send_notification(_request([1, 2, 3, 2]))

    assert sorted(n.user_id for n in created) == [1, 2, 3]
    assert len(store.records) == 3
    assert len({n.id for n in store.records}) == 3
    assert {(n.type, n.title, n.message, n.priority) for n in store.records} == {
        (
            NotificationType.TASK_ASSIGNED,
            "New task assigned",
            "You have been assigned 'Write docs'.",
            NotificationPriority.HIGH,
        )
    }
    assert all(n.expires_at is not None for n in store.records)


async def test_online_recipient_is_pushed_and_not_queued(
    dispatcher, directory, registry, make_socket
):
    directory.add(1)
    socket = make_socket()
    registry.add_connection(1, "tab", socket)

    [notification] = await dispatcher.send_notification(_request(1))

    pushed = socket.of_type("notification")
    assert len(pushed) == 1
    assert pushed[0]["data"]["id"] == notification.id
    assert pushed[0]["data"]["type"] == "task_assigned"
    summary = socket.of_type("notification_summary")
    assert summary[-1]["data"]["unread_count"] == 1
    assert dispatcher.queue.pending(1) == 0


async def test_offline_recipient_receives_queue_in_order_on_connect(
    dispatcher, directory, registry, make_socket
):
    directory.add(3)
    first = await dispatcher.send_notification(_request(3, title="First"))
    second = await dispatcher.send_notification(_request(3, title="Second"))
    assert dispatcher.queue.pending(3) == 2

    socket = make_socket()
    registry.add_connection(3, "tab", socket)
    replayed = await dispatcher.handle_connect(3)

    assert replayed == 2
    assert [m["data"]["id"] for m in socket.of_type("notification")] == [
        first[0].id,
        second[0].id,
    ]
    assert socket.sent[-1]["type"] == "notification_summary"
    assert socket.sent[-1]["data"]["unread_count"] == 2
    assert dispatcher.queue.pending(3) == 0


async def test_online_email_off_and_offline_email_on(
    dispatcher, directory, registry, email_sender, make_socket
):
    directory.add(
        1,
        email="u1@example.com",
        preferences=NotificationPreferences(
            email=ChannelPreferences(task_assigned=False),
            push=ChannelPreferences(task_assigned=True),
        ),
    )
    directory.add(2, email="u2@example.com")
    socket = make_socket()
    registry.add_connection(1, "tab", socket)

    await dispatcher.send_notification(_request([1, 2], email_notification=True))
    await dispatcher.join()

    assert len(socket.of_type("notification")) == 1
    assert dispatcher.queue.pending(1) == 0
    assert dispatcher.queue.pending(2) == 1
    assert [to for to, _ in email_sender.sent] == ["u2@example.com"]


async def test_email_is_skipped_when_request_opts_out(dispatcher, directory, email_sender):
    directory.add(1, email="u1@example.com")

    await dispatcher.send_notification(_request(1, email_notification=False))
    await dispatcher.join()

    assert email_sender.sent == []


async def test_real_time_disabled_suppresses_live_delivery(
    dispatcher, directory, registry, make_socket, store
):
    directory.add(
        1,
        preferences=NotificationPreferences(real_time=RealTimePreferences(enabled=False)),
    )
    socket = make_socket()
    registry.add_connection(1, "tab", socket)

    await dispatcher.send_notification(_request(1))

    assert socket.sent == []
    assert dispatcher.queue.pending(1) == 0
    assert len(store.records) == 1


async def test_failed_push_keeps_notification_for_next_connection(
    dispatcher, directory, registry, make_socket
):
    directory.add(1)
    registry.add_connection(1, "stale", make_socket(fail=True))

    await dispatcher.send_notification(_request(1))

    assert registry.is_online(1) is False
    assert dispatcher.queue.pending(1) == 1


async def test_unknown_recipient_is_persisted_but_not_delivered(
    dispatcher, store, email_sender
):
    created = await dispatcher.send_notification(_request(42))
    await dispatcher.join()

    assert len(created) == 1
    assert len(store.records) == 1
    assert dispatcher.queue.pending(42) == 0
    assert email_sender.sent == []


async def test_persistence_failure_surfaces_to_caller(
    dispatcher, directory, store, registry, make_socket
):
    directory.add(1)
    socket = make_socket()
    registry.add_connection(1, "tab", socket)
    store.fail_with = RuntimeError("database is down")

    with pytest.raises(NotificationPersistenceError) as excinfo:
        await dispatcher.send_notification(_request(1))

    assert excinfo.value.user_id == 1
    assert socket.sent == []


async def test_broadcast_to_role_targets_only_that_role(dispatcher, directory, store):
    directory.add(1, role="admin")
    directory.add(2, role="member")
    directory.add(3, role="admin")

    created = await dispatcher.broadcast_to_role(
        "admin", _request([], type=NotificationType.SYSTEM_ALERT)
    )

    assert sorted(n.user_id for n in created) == [1, 3]
    assert {n.user_id for n in store.records} == {1, 3}


async def test_broadcast_with_no_users_is_a_no_op(dispatcher, store):
    assert await dispatcher.broadcast_to_all(_request([])) == []
    assert store.records == []


async def test_connect_without_queue_sends_only_summary(
    dispatcher, directory, registry, make_socket
):
    directory.add(1)
    socket = make_socket()
    registry.add_connection(1, "tab", socket)

    assert await dispatcher.handle_connect(1) == 0
    assert [m["type"] for m in socket.sent] == ["notification_summary"]
    assert socket.sent[0]["data"] == {"unread_count": 0, "recent_notifications": []}


async def test_replay_to_failing_session_keeps_queue(
    dispatcher, directory, registry, make_socket
):
    directory.add(7)
    [queued] = await dispatcher.send_notification(_request(7))
    registry.add_connection(7, "stale", make_socket(fail=True))

    assert await dispatcher.handle_connect(7) == 0
    assert registry.is_online(7) is False
    assert dispatcher.queue.pending(7) == 1

    socket = make_socket()
    registry.add_connection(7, "tab", socket)
    assert await dispatcher.handle_connect(7) == 1
    assert [m["data"]["id"] for m in socket.of_type("notification")] == [queued.id]
    assert dispatcher.queue.pending(7) == 0


async def test_email_failure_only_affects_email_stats(
    store, directory, registry, make_socket, email_service, transport
):
    transport.fail = True
    dispatcher = NotificationDispatcher(
        store=store,
        directory=directory,
        push_channel=registry,
        email_sender=email_service,
    )
    directory.add(1, email="u1@example.com")
    directory.add(2, email="u2@example.com")
    socket = make_socket()
    registry.add_connection(1, "tab", socket)

    created = await dispatcher.send_notification(_request([1, 2], email_notification=True))
    await dispatcher.join()

    assert sorted(n.user_id for n in created) == [1, 2]
    assert len(socket.of_type("notification")) == 1
    assert dispatcher.queue.pending(2) == 1
    assert email_service.get_stats().failed == 2
    assert email_service.get_stats().sent == 0


async def test_recipient_is_looked_up_once_per_dispatch(dispatcher, directory, email_sender):
    directory.add(1, email="u1@example.com")

    await dispatcher.send_notification(_request(1, email_notification=True))
    await dispatcher.join()

    assert directory.lookups == 1
    assert [to for to, _ in email_sender.sent] == ["u1@example.com"]

"""Use cases for listing notifications and tracking their read state."""

from __future__ import annotations

from notifyhub.domain.entities import Notification, NotificationFilters, NotificationPage

from .exceptions import NotificationNotFoundError
from .ports import NotificationStore


def list_notifications(
    store: NotificationStore, user_id: int, filters: NotificationFilters
) -> NotificationPage:
    """Return one page of ``user_id``'s notifications, newest first."""

    return NotificationPage(
        notifications=list(store.find_by_user(user_id, filters)),
        page=filters.page,
        limit=filters.limit,
        total_count=store.count_for_user(user_id, filters),
        unread_count=store.count_unread(user_id),
    )


def get_notification_summary(
    store: NotificationStore, user_id: int, *, limit: int = 5
) -> tuple[int, list[Notification]]:
    """Return the unread count and the most recent unread notifications."""

    return store.count_unread(user_id), list(store.list_unread(user_id, limit=limit))


def mark_notification_as_read(
    store: NotificationStore, notification_id: int, *, user_id: int
) -> Notification:
    notification = store.mark_read(notification_id, user_id=user_id)
    if notification is None:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")
    return notification


def mark_all_notifications_as_read(store: NotificationStore, user_id: int) -> int:
    """Mark every unread notification of ``user_id`` as read.

    Returns the number of records that changed, so a repeated call returns 0.
    """

    return store.mark_all_read(user_id)


def delete_notification(
    store: NotificationStore, notification_id: int, *, user_id: int
) -> None:
    if not store.delete(notification_id, user_id=user_id):
        raise NotificationNotFoundError(f"Notification {notification_id} not found")


def clear_notifications(store: NotificationStore, user_id: int) -> int:
    return store.delete_for_user(user_id)


__all__ = [
    "clear_notifications",
    "delete_notification",
    "get_notification_summary",
    "list_notifications",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
]

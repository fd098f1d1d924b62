"""Websocket payloads for notification events."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from notifyhub.domain.entities import Notification, NotificationPage, NotificationPreferences

NOTIFICATION_EVENT = "notification"
SUMMARY_EVENT = "notification_summary"
LIST_EVENT = "notifications_list"
PREFERENCES_UPDATED_EVENT = "preferences_updated"


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON-serializable representation of ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "priority": notification.priority.value,
        "read": notification.read,
        "actionable": notification.actionable,
        "action": notification.action,
        "link": notification.link,
        "metadata": _normalize_datetime_values(dict(notification.metadata or {})),
        "created_at": _isoformat(notification.created_at),
        "updated_at": _isoformat(notification.updated_at),
        "expires_at": _isoformat(notification.expires_at),
    }


def notification_message(notification: Notification) -> dict[str, Any]:
    return {"type": NOTIFICATION_EVENT, "data": serialize_notification(notification)}


def summary_message(
    unread_count: int, recent: Iterable[Notification]
) -> dict[str, Any]:
    return {
        "type": SUMMARY_EVENT,
        "data": {
            "unread_count": unread_count,
            "recent_notifications": [serialize_notification(n) for n in recent],
        },
    }


def list_message(page: NotificationPage) -> dict[str, Any]:
    return {
        "type": LIST_EVENT,
        "data": {
            "notifications": [serialize_notification(n) for n in page.notifications],
            "pagination": {
                "page": page.page,
                "limit": page.limit,
                "total_count": page.total_count,
                "total_pages": page.total_pages,
            },
            "unread_count": page.unread_count,
        },
    }


def preferences_message(preferences: NotificationPreferences) -> dict[str, Any]:
    return {"type": PREFERENCES_UPDATED_EVENT, "data": preferences.to_dict()}


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _normalize_datetime_values(data: Any) -> Any:
    """Convert ``datetime`` instances nested inside ``data`` into ISO strings."""

    if isinstance(data, dict):
        for key, value in data.items():
            data[key] = _normalize_datetime_values(value)
    elif isinstance(data, list):
        for index, item in enumerate(data):
            data[index] = _normalize_datetime_values(item)
    elif isinstance(data, datetime):
        return data.isoformat()
    return data


__all__ = [
    "LIST_EVENT",
    "NOTIFICATION_EVENT",
    "PREFERENCES_UPDATED_EVENT",
    "SUMMARY_EVENT",
    "list_message",
    "notification_message",
    "preferences_message",
    "serialize_notification",
    "summary_message",
]

"""Public helpers for emitting and managing notifications."""

from .cleanup import purge_expired_notifications, run_cleanup_loop
from .delivery_queue import DeliveryQueue
from .dispatcher import NotificationDispatcher
from .events import (
    notify_meeting_reminder,
    notify_project_update,
    notify_system_alert,
    notify_task_assigned,
    notify_task_completed,
    notify_task_due,
)
from .exceptions import NotificationNotFoundError, NotificationPersistenceError
from .preferences import PreferenceResolver, resolve_channels
from .read_status import (
    clear_notifications,
    delete_notification,
    get_notification_summary,
    list_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
)

__all__ = [
    "DeliveryQueue",
    "NotificationDispatcher",
    "NotificationNotFoundError",
    "NotificationPersistenceError",
    "PreferenceResolver",
    "clear_notifications",
    "delete_notification",
    "get_notification_summary",
    "list_notifications",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
    "notify_meeting_reminder",
    "notify_project_update",
    "notify_system_alert",
    "notify_task_assigned",
    "notify_task_completed",
    "notify_task_due",
    "purge_expired_notifications",
    "resolve_channels",
    "run_cleanup_loop",
]

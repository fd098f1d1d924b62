"""Resolve which delivery channels fire for a recipient."""

from __future__ import annotations

import logging
from typing import Final

from notifyhub.domain.entities import (
    DeliveryChannels,
    NotificationPreferences,
    NotificationType,
    User,
)

from .ports import UserDirectory

logger = logging.getLogger(__name__)

# ``general`` maps to no category: every channel fires for it.
TYPE_CATEGORIES: Final[dict[NotificationType, str]] = {
    NotificationType.TASK_ASSIGNED: "task_assigned",
    NotificationType.TASK_DUE: "task_due",
    NotificationType.TASK_COMPLETED: "team_activity",
    NotificationType.PROJECT_UPDATE: "project_updates",
    NotificationType.PROJECT_MILESTONE: "project_updates",
    NotificationType.MEETING_REMINDER: "meeting_reminders",
    NotificationType.FEEDBACK_RESPONSE: "feedback_response",
    NotificationType.SYSTEM_ALERT: "system_alerts",
}


def resolve_channels(
    preferences: NotificationPreferences | None,
    notification_type: NotificationType | str,
) -> DeliveryChannels:
    """Return the channels enabled by ``preferences`` for ``notification_type``.

    ``None`` preferences mean the user never saved any, so the defaults apply.
    """

    prefs = preferences if preferences is not None else NotificationPreferences()
    category = TYPE_CATEGORIES.get(NotificationType(notification_type))
    if category is None:
        return DeliveryChannels(email=True, push=True, real_time=prefs.real_time.enabled)
    return DeliveryChannels(
        email=prefs.email.is_enabled(category),
        push=prefs.push.is_enabled(category),
        real_time=prefs.real_time.enabled,
    )


class PreferenceResolver:
    """Look up stored preferences through the user directory."""

    def __init__(self, directory: UserDirectory) -> None:
        self._directory = directory

    def resolve(
        self, user_id: int, notification_type: NotificationType | str
    ) -> DeliveryChannels:
        channels, _ = self.resolve_recipient(user_id, notification_type)
        return channels

    def resolve_recipient(
        self, user_id: int, notification_type: NotificationType | str
    ) -> tuple[DeliveryChannels, User | None]:
        """Return the enabled channels together with the user they were read from."""

        try:
            user = self._directory.get_user(user_id)
        except Exception:
            logger.exception("Preference lookup failed for user %s", user_id)
            return DeliveryChannels.suppressed(), None
        if user is None:
            logger.warning("User %s not found; suppressing notification channels", user_id)
            return DeliveryChannels.suppressed(), None
        return resolve_channels(user.notification_preferences, notification_type), user


__all__ = ["PreferenceResolver", "TYPE_CATEGORIES", "resolve_channels"]

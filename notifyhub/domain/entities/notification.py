"""Domain entities describing user notifications."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 1000
ACTION_MAX_LENGTH = 100
LINK_MAX_LENGTH = 500


class NotificationType(str, Enum):
    """Kinds of events a notification can describe."""

    TASK_ASSIGNED = "task_assigned"
    TASK_DUE = "task_due"
    TASK_COMPLETED = "task_completed"
    PROJECT_UPDATE = "project_update"
    PROJECT_MILESTONE = "project_milestone"
    MEETING_REMINDER = "meeting_reminder"
    FEEDBACK_RESPONSE = "feedback_response"
    SYSTEM_ALERT = "system_alert"
    GENERAL = "general"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    user_id: int
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    read: bool = False
    actionable: bool = False
    action: str | None = None
    link: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass
class NotificationRequest:
    """A notification to fan out to one or more recipients.

    ``recipients`` accepts a single user id or a sequence of ids. Each
    recipient receives an independent :class:`Notification` record.
    """

    recipients: int | Sequence[int]
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    actionable: bool = False
    action: str | None = None
    link: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    expires_at: datetime | None = None
    email_notification: bool = True
    push_notification: bool = True

    def __post_init__(self) -> None:
        self.type = NotificationType(self.type)
        self.priority = NotificationPriority(self.priority)
        if not self.title or len(self.title) > TITLE_MAX_LENGTH:
            raise ValueError(
                f"Notification title must be between 1 and {TITLE_MAX_LENGTH} characters"
            )
        if not self.message or len(self.message) > MESSAGE_MAX_LENGTH:
            raise ValueError(
                f"Notification message must be between 1 and {MESSAGE_MAX_LENGTH} characters"
            )
        if self.action is not None and len(self.action) > ACTION_MAX_LENGTH:
            raise ValueError(f"Notification action exceeds {ACTION_MAX_LENGTH} characters")
        if self.link is not None and len(self.link) > LINK_MAX_LENGTH:
            raise ValueError(f"Notification link exceeds {LINK_MAX_LENGTH} characters")

    def recipient_ids(self) -> list[int]:
        """Return the recipients without duplicates, preserving order."""

        if isinstance(self.recipients, int):
            return [self.recipients]
        unique: list[int] = []
        seen: set[int] = set()
        for user_id in self.recipients:
            if user_id is None or user_id in seen:
                continue
            seen.add(user_id)
            unique.append(user_id)
        return unique

    def with_recipients(self, recipients: Sequence[int]) -> "NotificationRequest":
        """Return a copy of the request addressed to ``recipients``."""

        return NotificationRequest(
            recipients=list(recipients),
            type=self.type,
            title=self.title,
            message=self.message,
            priority=self.priority,
            actionable=self.actionable,
            action=self.action,
            link=self.link,
            metadata=dict(self.metadata),
            expires_at=self.expires_at,
            email_notification=self.email_notification,
            push_notification=self.push_notification,
        )


@dataclass
class NotificationFilters:
    """Criteria used when listing notifications for a user."""

    page: int = 1
    limit: int = 20
    unread_only: bool = False
    type: NotificationType | None = None
    priority: NotificationPriority | None = None

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit


@dataclass
class NotificationPage:
    notifications: list[Notification]
    page: int
    limit: int
    total_count: int
    unread_count: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total_count // self.limit)


__all__ = [
    "Notification",
    "NotificationFilters",
    "NotificationPage",
    "NotificationPriority",
    "NotificationRequest",
    "NotificationType",
]

"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from notifyhub.domain.entities import (
    ChannelPreferences,
    Notification,
    NotificationPage,
    NotificationPreferences,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
    RealTimePreferences,
)
from notifyhub.domain.entities.notification import (
    ACTION_MAX_LENGTH,
    LINK_MAX_LENGTH,
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    read: bool
    actionable: bool
    action: str | None = None
    link: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id or 0,
            user_id=notification.user_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            priority=notification.priority,
            read=notification.read,
            actionable=notification.actionable,
            action=notification.action,
            link=notification.link,
            metadata=notification.metadata or {},
            created_at=notification.created_at,
            updated_at=notification.updated_at,
            expires_at=notification.expires_at,
        )


class PaginationRead(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRead]
    pagination: PaginationRead
    unread_count: int

    @classmethod
    def from_page(cls, page: NotificationPage) -> "NotificationListResponse":
        return cls(
            notifications=[NotificationRead.from_entity(n) for n in page.notifications],
            pagination=PaginationRead(
                page=page.page,
                limit=page.limit,
                total_count=page.total_count,
                total_pages=page.total_pages,
            ),
            unread_count=page.unread_count,
        )


class NotificationSummaryRead(BaseModel):
    unread_count: int
    recent_notifications: list[NotificationRead]


class NotificationCountResponse(BaseModel):
    """Number of notifications affected by a bulk operation."""

    count: int


class NotificationContent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: NotificationType = NotificationType.GENERAL
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    message: str = Field(..., min_length=1, max_length=MESSAGE_MAX_LENGTH)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    actionable: bool = False
    action: str | None = Field(default=None, max_length=ACTION_MAX_LENGTH)
    link: str | None = Field(default=None, max_length=LINK_MAX_LENGTH)
    metadata: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime | None = None
    email_notification: bool = True
    push_notification: bool = True

    def to_request(self, recipients: list[int]) -> NotificationRequest:
        return NotificationRequest(
            recipients=recipients,
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


class NotificationCreate(NotificationContent):
    recipients: list[int] = Field(..., min_length=1, description="Recipient user ids")


class NotificationBroadcast(NotificationContent):
    role: str | None = Field(default=None, description="Restrict to users with this role alias")


class DispatchResponse(BaseModel):
    delivered_to: int
    notifications: list[NotificationRead]


class ChannelPreferencesSchema(BaseModel):
    task_assigned: bool = True
    task_due: bool = True
    project_updates: bool = True
    meeting_reminders: bool = True
    feedback_response: bool = True
    system_alerts: bool = True
    team_activity: bool = True


class RealTimePreferencesSchema(BaseModel):
    enabled: bool = True
    sound: bool = True
    desktop: bool = True


class NotificationPreferencesSchema(BaseModel):
    email: ChannelPreferencesSchema = Field(
        default_factory=lambda: ChannelPreferencesSchema(team_activity=False)
    )
    push: ChannelPreferencesSchema = Field(default_factory=ChannelPreferencesSchema)
    real_time: RealTimePreferencesSchema = Field(default_factory=RealTimePreferencesSchema)

    @classmethod
    def from_entity(cls, preferences: NotificationPreferences) -> "NotificationPreferencesSchema":
        return cls.model_validate(preferences.to_dict())

    def to_entity(self) -> NotificationPreferences:
        return NotificationPreferences(
            email=ChannelPreferences(**self.email.model_dump()),
            push=ChannelPreferences(**self.push.model_dump()),
            real_time=RealTimePreferences(**self.real_time.model_dump()),
        )


class ConnectionStatusRead(BaseModel):
    online: bool
    connections: int
    connected_users: int


__all__ = [
    "ConnectionStatusRead",
    "DispatchResponse",
    "NotificationBroadcast",
    "NotificationCountResponse",
    "NotificationCreate",
    "NotificationListResponse",
    "NotificationPreferencesSchema",
    "NotificationRead",
    "NotificationSummaryRead",
]

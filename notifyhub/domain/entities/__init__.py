"""Domain entities exposed by the application."""

from .email import EmailAttachment, EmailFailure, EmailMessage, EmailStats, EmailTemplate
from .notification import (
    Notification,
    NotificationFilters,
    NotificationPage,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
)
from .preferences import (
    ChannelPreferences,
    DeliveryChannels,
    NotificationPreferences,
    RealTimePreferences,
)
from .role import Role
from .user import User

__all__ = [
    "ChannelPreferences",
    "DeliveryChannels",
    "EmailAttachment",
    "EmailFailure",
    "EmailMessage",
    "EmailStats",
    "EmailTemplate",
    "Notification",
    "NotificationFilters",
    "NotificationPage",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationRequest",
    "NotificationType",
    "RealTimePreferences",
    "Role",
    "User",
]

from .email import (
    EmailFailureRead,
    EmailQueued,
    EmailResult,
    EmailSendRequest,
    EmailStatsRead,
    EmailStatusRead,
    EmailTemplateCreate,
    PasswordResetEmailRequest,
    TaskAssignmentEmailRequest,
    TeamInvitationEmailRequest,
    TemplateEmailRequest,
    WelcomeEmailRequest,
)
from .notification import (
    ConnectionStatusRead,
    DispatchResponse,
    NotificationBroadcast,
    NotificationCountResponse,
    NotificationCreate,
    NotificationListResponse,
    NotificationPreferencesSchema,
    NotificationRead,
    NotificationSummaryRead,
)

__all__ = [
    "ConnectionStatusRead",
    "DispatchResponse",
    "EmailFailureRead",
    "EmailQueued",
    "EmailResult",
    "EmailSendRequest",
    "EmailStatsRead",
    "EmailStatusRead",
    "EmailTemplateCreate",
    "NotificationBroadcast",
    "NotificationCountResponse",
    "NotificationCreate",
    "NotificationListResponse",
    "NotificationPreferencesSchema",
    "NotificationRead",
    "NotificationSummaryRead",
    "PasswordResetEmailRequest",
    "TaskAssignmentEmailRequest",
    "TeamInvitationEmailRequest",
    "TemplateEmailRequest",
    "WelcomeEmailRequest",
]

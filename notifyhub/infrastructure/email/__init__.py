"""Outgoing email: transports, templates and the sending service."""

from .service import EmailService
from .templates import DEFAULT_TEMPLATES, priority_color, render
from .transports import (
    MailTransport,
    MailTransportError,
    NullTransport,
    SendGridTransport,
    SmtpTransport,
    build_mail_transport,
)

__all__ = [
    "DEFAULT_TEMPLATES",
    "EmailService",
    "MailTransport",
    "MailTransportError",
    "NullTransport",
    "SendGridTransport",
    "SmtpTransport",
    "build_mail_transport",
    "priority_color",
    "render",
]

"""Domain entities used by the email sender."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class EmailAttachment:
    filename: str
    content: bytes | str
    content_type: str | None = None


@dataclass
class EmailMessage:
    """A fully formed outgoing email. Constructed, sent and discarded."""

    from_address: str
    to: list[str]
    subject: str
    text: str | None = None
    html: str | None = None
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    attachments: list[EmailAttachment] = field(default_factory=list)

    @property
    def all_recipients(self) -> list[str]:
        return [*self.to, *self.cc, *self.bcc]


@dataclass
class EmailTemplate:
    """Named template with ``{{variable}}`` placeholders."""

    name: str
    subject: str
    html: str
    variables: list[str] = field(default_factory=list)


@dataclass
class EmailStats:
    sent: int = 0
    failed: int = 0
    queued: int = 0
    delivered: int = 0


@dataclass
class EmailFailure:
    """Record of a message the transport could not deliver."""

    occurred_at: datetime
    recipients: list[str]
    subject: str
    error: str


__all__ = [
    "EmailAttachment",
    "EmailFailure",
    "EmailMessage",
    "EmailStats",
    "EmailTemplate",
]

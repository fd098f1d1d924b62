"""Mail transports used by :class:`EmailService`."""

from __future__ import annotations

import base64
import json
import logging
import ssl
from email.message import EmailMessage as MimeMessage
from email.utils import formatdate, make_msgid
from functools import partial
from typing import Any, Protocol

import aiosmtplib
from anyio import to_thread
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Bcc,
    Cc,
    Disposition,
    FileContent,
    FileName,
    FileType,
    Mail,
)

from notifyhub.config import Settings
from notifyhub.domain.entities import EmailMessage

logger = logging.getLogger(__name__)


class MailTransportError(RuntimeError):
    """Raised when a transport cannot verify its connection or deliver a message."""


class MailTransport(Protocol):
    name: str

    async def verify(self) -> None:
        """Perform a handshake without sending mail; raise on failure."""

    async def send(self, message: EmailMessage) -> str | None:
        """Deliver ``message`` and return the provider message id."""


class NullTransport:
    """Transport used when no working mail server is available."""

    name = "none"

    def __init__(self, reason: str = "No mail transport configured") -> None:
        self.reason = reason

    async def verify(self) -> None:
        raise MailTransportError(self.reason)

    async def send(self, message: EmailMessage) -> str | None:
        raise MailTransportError(self.reason)


class SmtpTransport:
    """Deliver mail through an SMTP server using aiosmtplib.

    ``use_tls`` selects implicit TLS; otherwise STARTTLS is negotiated when
    the server offers it.
    """

    name = "smtp"

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def _client(self) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self._host,
            port=self._port,
            use_tls=self._use_tls,
            start_tls=None,
            tls_context=ssl.create_default_context(),
            timeout=self._timeout,
        )

    async def verify(self) -> None:
        smtp = self._client()
        try:
            async with smtp:
                if self._username and self._password:
                    await smtp.login(self._username, self._password)
                await smtp.noop()
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise MailTransportError(f"SMTP handshake with {self._host} failed: {exc}") from exc

    async def send(self, message: EmailMessage) -> str | None:
        mime_message = build_mime_message(message)
        smtp = self._client()
        try:
            async with smtp:
                if self._username and self._password:
                    await smtp.login(self._username, self._password)
                errors, _response = await smtp.send_message(mime_message)
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise MailTransportError(f"SMTP delivery failed: {exc}") from exc
        if errors and len(errors) >= len(message.all_recipients):
            raise MailTransportError(f"All recipients rejected: {errors}")
        if errors:
            logger.warning("Some SMTP recipients rejected: %s", errors)
        return mime_message["Message-ID"]


def build_mime_message(message: EmailMessage) -> MimeMessage:
    """Convert ``message`` into a MIME message ready for SMTP."""

    mime = MimeMessage()
    mime["From"] = message.from_address
    mime["To"] = ", ".join(message.to)
    if message.cc:
        mime["Cc"] = ", ".join(message.cc)
    # Bcc recipients are passed to the envelope only, never as a header.
    mime["Subject"] = message.subject
    mime["Date"] = formatdate(localtime=True)
    mime["Message-ID"] = make_msgid()

    mime.set_content(message.text or _html_fallback_text(message.html))
    if message.html:
        mime.add_alternative(message.html, subtype="html")

    for attachment in message.attachments:
        content = attachment.content
        if isinstance(content, str):
            content = content.encode("utf-8")
        maintype, _, subtype = (attachment.content_type or "application/octet-stream").partition("/")
        mime.add_attachment(
            content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )
    return mime


def _html_fallback_text(html: str | None) -> str:
    return "This message requires an HTML capable email client." if html else ""


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_sendgrid_failure(status_code: Any, body: Any) -> str:
    details = _extract_sendgrid_error_details(body)
    if status_code and details:
        return f"SendGrid API request failed with status {status_code}: {details}"
    if status_code:
        return f"SendGrid API request failed with status {status_code}"
    if details:
        return f"SendGrid API request failed: {details}"
    return "SendGrid API request failed"


class SendGridTransport:
    """Deliver mail through the SendGrid Web API.

    The official client is synchronous, so calls run in a worker thread.
    """

    name = "sendgrid"

    def __init__(self, *, api_key: str) -> None:
        self._api_key = api_key

    async def verify(self) -> None:
        client = SendGridAPIClient(self._api_key)
        try:
            response = await to_thread.run_sync(client.client.scopes.get)
        except Exception as exc:
            raise MailTransportError(
                _describe_sendgrid_failure(
                    getattr(exc, "status_code", None), getattr(exc, "body", None)
                )
            ) from exc
        self._check_response(response)

    async def send(self, message: EmailMessage) -> str | None:
        mail = self._build_mail(message)
        client = SendGridAPIClient(self._api_key)
        try:
            response = await to_thread.run_sync(partial(client.send, mail))
        except Exception as exc:
            description = _describe_sendgrid_failure(
                getattr(exc, "status_code", None), getattr(exc, "body", None)
            )
            logger.error(description)
            raise MailTransportError(description) from exc
        self._check_response(response)
        headers = getattr(response, "headers", None) or {}
        return headers.get("X-Message-Id")

    @staticmethod
    def _check_response(response: Any) -> None:
        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            description = _describe_sendgrid_failure(
                status_code or "unknown", getattr(response, "body", None)
            )
            logger.error(description)
            raise MailTransportError(description)

    @staticmethod
    def _build_mail(message: EmailMessage) -> Mail:
        mail = Mail(
            from_email=message.from_address,
            to_emails=message.to,
            subject=message.subject,
            html_content=message.html,
            plain_text_content=message.text,
        )
        for address in message.cc:
            mail.add_cc(Cc(address))
        for address in message.bcc:
            mail.add_bcc(Bcc(address))
        for attachment in message.attachments:
            content = attachment.content
            if isinstance(content, str):
                content = content.encode("utf-8")
            mail.add_attachment(
                Attachment(
                    FileContent(base64.b64encode(content).decode("ascii")),
                    FileName(attachment.filename),
                    FileType(attachment.content_type or "application/octet-stream"),
                    Disposition("attachment"),
                )
            )
        return mail


def build_mail_transport(settings: Settings) -> MailTransport:
    """Return the transport selected by ``EMAIL_PROVIDER``."""

    if settings.email_provider == "sendgrid" and settings.sendgrid_api_key:
        return SendGridTransport(api_key=settings.sendgrid_api_key)
    if settings.email_provider == "smtp":
        return SmtpTransport(
            host=settings.email_host,
            port=settings.email_port,
            username=settings.email_user,
            password=settings.email_password,
            use_tls=settings.email_secure,
            timeout=settings.email_timeout_seconds,
        )
    return NullTransport()


__all__ = [
    "MailTransport",
    "MailTransportError",
    "NullTransport",
    "SendGridTransport",
    "SmtpTransport",
    "build_mail_transport",
    "build_mime_message",
]

"""Transactional email sender with templates, a send queue and delivery stats."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import replace
from typing import Any, Iterable, Sequence

from jinja2 import TemplateError

from notifyhub.config import Settings
from notifyhub.domain.entities import (
    EmailFailure,
    EmailMessage,
    EmailStats,
    EmailTemplate,
    Notification,
)
from notifyhub.utils import now_in_app_timezone

from .templates import DEFAULT_TEMPLATES, action_button, priority_color, render
from .transports import MailTransport, MailTransportError, NullTransport

logger = logging.getLogger(__name__)

FAILURE_HISTORY_SIZE = 50


def _as_list(value: str | Sequence[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class EmailService:
    """Send email through a :class:`MailTransport` without ever raising.

    Counters are kept for the process lifetime only. When the transport
    handshake fails during :meth:`initialize`, a :class:`NullTransport` takes
    its place so sends fail fast instead of waiting on a broken server.
    """

    def __init__(
        self,
        transport: MailTransport,
        *,
        default_sender: str,
        app_name: str,
        frontend_url: str,
        queue_interval: float = 1.0,
        templates: Iterable[EmailTemplate] = DEFAULT_TEMPLATES,
    ) -> None:
        self._transport = transport
        self._default_sender = default_sender
        self._app_name = app_name
        self._frontend_url = frontend_url.rstrip("/")
        self._queue_interval = queue_interval
        self._templates: dict[str, EmailTemplate] = {}
        self._queue: deque[EmailMessage] = deque()
        self._queue_task: asyncio.Task[None] | None = None
        self._stats = EmailStats()
        self.failures: deque[EmailFailure] = deque(maxlen=FAILURE_HISTORY_SIZE)
        for template in templates:
            self.add_template(template)

    @classmethod
    def from_settings(cls, settings: Settings, transport: MailTransport) -> "EmailService":
        return cls(
            transport,
            default_sender=settings.sendgrid_sender
            if settings.email_provider == "sendgrid" and settings.sendgrid_sender
            else settings.email_from,
            app_name=settings.app_name,
            frontend_url=settings.frontend_url,
            queue_interval=settings.email_queue_interval_seconds,
        )

    @property
    def transport_name(self) -> str:
        return self._transport.name

    async def initialize(self) -> bool:
        """Verify the transport, falling back to :class:`NullTransport` on failure."""

        try:
            await self._transport.verify()
        except Exception as exc:
            logger.error(
                "Email transport '%s' handshake failed, email delivery disabled: %s",
                self._transport.name,
                exc,
            )
            self._transport = NullTransport(f"Mail transport unavailable: {exc}")
            return False
        logger.info("Email transport '%s' connected", self._transport.name)
        return True

    async def test_connection(self) -> bool:
        """Return whether the transport handshake currently succeeds."""

        try:
            await self._transport.verify()
        except Exception:
            return False
        return True

    # Templates -----------------------------------------------------------

    def add_template(self, template: EmailTemplate) -> None:
        self._templates[template.name] = template

    def get_template(self, name: str) -> EmailTemplate | None:
        return self._templates.get(name)

    def get_templates(self) -> list[str]:
        return list(self._templates)

    # Sending -------------------------------------------------------------

    async def send_email(self, message: EmailMessage) -> bool:
        """Deliver ``message``; failures are counted and logged, never raised."""

        try:
            message_id = await self._transport.send(message)
        except Exception as exc:
            self._record_failure(message.all_recipients, message.subject, exc)
            return False
        self._stats.sent += 1
        logger.info("Email '%s' sent to %s (%s)", message.subject, message.to, message_id)
        return True

    async def send_template_email(
        self,
        template_name: str,
        to: str | Sequence[str],
        variables: dict[str, Any],
        **overrides: Any,
    ) -> bool:
        """Render ``template_name`` with ``variables`` and send it.

        Placeholders without a value stay in the output as written. An
        unknown template counts as a failed send.
        """

        template = self._templates.get(template_name)
        recipients = _as_list(to)
        if template is None:
            self._record_failure(
                recipients,
                template_name,
                LookupError(f"Template '{template_name}' not found"),
            )
            return False

        context = {"appName": self._app_name, **variables}
        try:
            subject = render(template.subject, context)
            body = render(template.html, context, escape=True)
        except TemplateError as exc:
            self._record_failure(recipients, template.subject, exc)
            return False
        message = EmailMessage(
            from_address=self._default_sender,
            to=recipients,
            subject=subject,
            html=body,
        )
        if overrides:
            message = replace(message, **self._normalize_overrides(overrides))
        return await self.send_email(message)

    def build_message(
        self,
        *,
        to: str | Sequence[str],
        subject: str,
        text: str | None = None,
        html: str | None = None,
        cc: str | Sequence[str] | None = None,
        bcc: str | Sequence[str] | None = None,
        from_address: str | None = None,
    ) -> EmailMessage:
        return EmailMessage(
            from_address=from_address or self._default_sender,
            to=_as_list(to),
            cc=_as_list(cc),
            bcc=_as_list(bcc),
            subject=subject,
            text=text,
            html=html,
        )

    # Fixed-template call sites ------------------------------------------

    async def send_welcome_email(
        self, to: str, user_name: str, user_email: str | None = None
    ) -> bool:
        return await self.send_template_email(
            "welcome",
            to,
            {
                "userName": user_name,
                "userEmail": user_email or to,
                "dashboardUrl": f"{self._frontend_url}/dashboard",
            },
        )

    async def send_password_reset_email(
        self,
        to: str,
        user_name: str,
        *,
        reset_token: str | None = None,
        reset_link: str | None = None,
        expiry_time: str = "1 hour",
    ) -> bool:
        if reset_link is None:
            if reset_token is None:
                raise ValueError("Either reset_token or reset_link is required")
            reset_link = f"{self._frontend_url}/reset-password?token={reset_token}"
        return await self.send_template_email(
            "password-reset",
            to,
            {"userName": user_name, "resetLink": reset_link, "expiryTime": expiry_time},
        )

    async def send_task_assignment_email(
        self,
        to: str,
        *,
        assignee_name: str,
        project_name: str,
        task_title: str,
        task_description: str,
        due_date: str,
        priority: str,
        task_id: str | None = None,
        task_link: str | None = None,
        assigner_name: str = "A teammate",
    ) -> bool:
        return await self.send_template_email(
            "task-assigned",
            to,
            {
                "assigneeName": assignee_name,
                "assignerName": assigner_name,
                "projectName": project_name,
                "taskTitle": task_title,
                "taskDescription": task_description,
                "dueDate": due_date,
                "priority": priority.upper(),
                "priorityColor": priority_color(priority),
                "taskUrl": task_link or f"{self._frontend_url}/tasks/{task_id}",
            },
        )

    async def send_team_invitation_email(
        self,
        to: str,
        *,
        invitee_name: str,
        inviter_name: str,
        team_name: str,
        role: str,
        invitation_token: str | None = None,
        invitation_link: str | None = None,
        expiry_time: str = "7 days",
    ) -> bool:
        return await self.send_template_email(
            "team-invitation",
            to,
            {
                "inviteeName": invitee_name,
                "inviterName": inviter_name,
                "teamName": team_name,
                "role": role,
                "invitationUrl": invitation_link
                or f"{self._frontend_url}/accept-invitation?token={invitation_token}",
                "expiryTime": expiry_time,
            },
        )

    async def send_project_invitation_email(
        self,
        to: str,
        *,
        invitee_name: str,
        inviter_name: str,
        project_name: str,
        project_description: str,
        role: str,
        invitation_token: str,
    ) -> bool:
        return await self.send_template_email(
            "project-invitation",
            to,
            {
                "inviteeName": invitee_name,
                "inviterName": inviter_name,
                "projectName": project_name,
                "projectDescription": project_description,
                "role": role,
                "invitationUrl": f"{self._frontend_url}/join-project?token={invitation_token}",
            },
        )

    async def send_task_deadline_reminder(
        self,
        to: str,
        *,
        user_name: str,
        task_title: str,
        project_name: str,
        due_date: str,
        time_remaining: str,
        priority: str,
        task_id: str,
    ) -> bool:
        return await self.send_template_email(
            "task-deadline-reminder",
            to,
            {
                "userName": user_name,
                "taskTitle": task_title,
                "projectName": project_name,
                "dueDate": due_date,
                "timeRemaining": time_remaining,
                "priority": priority.upper(),
                "priorityColor": priority_color(priority),
                "taskUrl": f"{self._frontend_url}/tasks/{task_id}",
            },
        )

    async def send_notification_email(self, to: str, notification: Notification) -> bool:
        button = ""
        if notification.actionable and notification.link:
            button = action_button(
                f"{self._frontend_url}{notification.link}",
                notification.action or "View Details",
            )
        sent_at = notification.created_at or now_in_app_timezone()
        return await self.send_template_email(
            "notification",
            to,
            {
                "title": notification.title,
                "message": notification.message,
                "actionButton": button,
                "sentAt": sent_at.strftime("%Y-%m-%d %H:%M %Z").strip(),
            },
        )

    # Queue ---------------------------------------------------------------

    def queue_email(self, message: EmailMessage) -> int:
        """Queue ``message`` for background delivery and return the queue length."""

        self._queue.append(message)
        self._stats.queued += 1
        if self._queue_task is None or self._queue_task.done():
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running loop; queued email waits for drain_queue()")
            else:
                self._queue_task = loop.create_task(self._process_queue())
        return len(self._queue)

    def queue_length(self) -> int:
        return len(self._queue)

    async def drain_queue(self) -> int:
        """Send every queued message now and return how many were delivered."""

        delivered = 0
        while self._queue:
            if await self._send_next_queued():
                delivered += 1
        return delivered

    async def _process_queue(self) -> None:
        while self._queue:
            await self._send_next_queued()
            if self._queue and self._queue_interval:
                await asyncio.sleep(self._queue_interval)

    async def _send_next_queued(self) -> bool:
        message = self._queue.popleft()
        self._stats.queued -= 1
        success = await self.send_email(message)
        if success:
            self._stats.delivered += 1
        return success

    async def aclose(self) -> None:
        if self._queue_task is not None and not self._queue_task.done():
            self._queue_task.cancel()
            try:
                await self._queue_task
            except asyncio.CancelledError:
                pass
        self._queue_task = None

    # Stats ---------------------------------------------------------------

    def get_stats(self) -> EmailStats:
        return replace(self._stats)

    def _record_failure(self, recipients: list[str], subject: str, exc: Exception) -> None:
        self._stats.failed += 1
        self.failures.append(
            EmailFailure(
                occurred_at=now_in_app_timezone(),
                recipients=list(recipients),
                subject=subject,
                error=str(exc),
            )
        )
        if isinstance(exc, (MailTransportError, LookupError, TemplateError)):
            logger.error("Failed to send email '%s' to %s: %s", subject, recipients, exc)
        else:
            logger.error(
                "Failed to send email '%s' to %s", subject, recipients, exc_info=exc
            )

    @staticmethod
    def _normalize_overrides(overrides: dict[str, Any]) -> dict[str, Any]:
        normalized = dict(overrides)
        for key in ("to", "cc", "bcc"):
            if key in normalized:
                normalized[key] = _as_list(normalized[key])
        return normalized


__all__ = ["EmailService", "FAILURE_HISTORY_SIZE"]

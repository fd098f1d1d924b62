"""Fan notifications out to persistence, websockets, the offline queue and email."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Sequence

from notifyhub.domain.entities import (
    DeliveryChannels,
    Notification,
    NotificationRequest,
)
from notifyhub.infrastructure.notifications.publisher import (
    notification_message,
    summary_message,
)
from notifyhub.utils import now_in_app_timezone

from .delivery_queue import DeliveryQueue
from .exceptions import NotificationPersistenceError
from .ports import NotificationEmailSender, NotificationStore, PushChannel, UserDirectory
from .preferences import PreferenceResolver

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Decide and execute the delivery channels of each notification.

    Each recipient gets an independent record that is persisted before any
    delivery is attempted. Online recipients receive a websocket push, offline
    ones are queued until they reconnect, and email is sent in the background
    when both the request and the recipient's preferences allow it.
    """

    def __init__(
        self,
        *,
        store: NotificationStore,
        directory: UserDirectory,
        push_channel: PushChannel,
        email_sender: NotificationEmailSender,
        queue: DeliveryQueue | None = None,
        retention_days: int = 30,
        summary_size: int = 5,
    ) -> None:
        self._store = store
        self._directory = directory
        self._push = push_channel
        self._email = email_sender
        self._resolver = PreferenceResolver(directory)
        self.queue = queue or DeliveryQueue()
        self._retention = timedelta(days=retention_days)
        self._summary_size = summary_size
        self._email_tasks: set[asyncio.Task[bool]] = set()

    async def send_notification(self, request: NotificationRequest) -> list[Notification]:
        """Persist and deliver ``request`` to each of its recipients."""

        recipients = request.recipient_ids()
        if not recipients:
            return []
        results = await asyncio.gather(
            *(self._deliver_to(user_id, request) for user_id in recipients)
        )
        logger.info(
            "Notification '%s' (%s) dispatched to %s recipient(s)",
            request.title,
            request.type.value,
            len(results),
        )
        return list(results)

    async def broadcast_to_all(self, request: NotificationRequest) -> list[Notification]:
        user_ids = self._directory.list_user_ids()
        return await self._broadcast(request, user_ids)

    async def broadcast_to_role(
        self, role: str, request: NotificationRequest
    ) -> list[Notification]:
        user_ids = self._directory.list_user_ids(role=role)
        return await self._broadcast(request, user_ids)

    async def handle_connect(self, user_id: int) -> int:
        """Replay queued notifications to a user who just connected.

        Returns how many queued notifications were pushed. If every session
        fails mid-replay, the undelivered remainder goes back on the queue in
        its original order.
        """

        queued = self.queue.flush(user_id)
        replayed = 0
        for notification in queued:
            if not await self._push.send_to_user(user_id, notification_message(notification)):
                self.queue.restore(user_id, queued[replayed:])
                logger.warning(
                    "Replay to user %s interrupted; %s notification(s) re-queued",
                    user_id,
                    len(queued) - replayed,
                )
                break
            replayed += 1
        if replayed:
            logger.info("Replayed %s queued notification(s) to user %s", replayed, user_id)
        await self.send_summary(user_id)
        return replayed

    async def send_summary(self, user_id: int) -> None:
        if not self._push.is_online(user_id):
            return
        unread_count = self._store.count_unread(user_id)
        recent = self._store.list_unread(user_id, limit=self._summary_size)
        await self._push.send_to_user(user_id, summary_message(unread_count, recent))

    async def join(self) -> None:
        """Wait for background email sends started by previous dispatches."""

        while self._email_tasks:
            await asyncio.gather(*list(self._email_tasks), return_exceptions=True)

    async def _broadcast(
        self, request: NotificationRequest, user_ids: Sequence[int]
    ) -> list[Notification]:
        if not user_ids:
            return []
        return await self.send_notification(request.with_recipients(user_ids))

    async def _deliver_to(self, user_id: int, request: NotificationRequest) -> Notification:
        notification = self._persist(user_id, request)
        channels, user = self._resolver.resolve_recipient(user_id, request.type)

        if request.push_notification and channels.push:
            await self._deliver_live(user_id, notification, channels)

        if request.email_notification and channels.email and user is not None and user.email:
            self._schedule_email(user.email, notification)

        return notification

    def _persist(self, user_id: int, request: NotificationRequest) -> Notification:
        now = now_in_app_timezone()
        notification = Notification(
            id=None,
            user_id=user_id,
            type=request.type,
            title=request.title,
            message=request.message,
            priority=request.priority,
            read=False,
            actionable=request.actionable,
            action=request.action,
            link=request.link,
            metadata=dict(request.metadata),
            created_at=now,
            updated_at=now,
            expires_at=request.expires_at or now + self._retention,
        )
        try:
            return self._store.create(notification)
        except Exception as exc:
            logger.exception("Failed to persist notification for user %s", user_id)
            raise NotificationPersistenceError(user_id, exc) from exc

    async def _deliver_live(
        self, user_id: int, notification: Notification, channels: DeliveryChannels
    ) -> None:
        if not self._push.is_online(user_id):
            self.queue.enqueue(user_id, notification)
            return
        if not channels.real_time:
            return
        delivered = await self._push.send_to_user(user_id, notification_message(notification))
        if delivered:
            await self.send_summary(user_id)
        else:
            # every session failed while sending; keep it for the next connection
            self.queue.enqueue(user_id, notification)

    def _schedule_email(self, email: str, notification: Notification) -> None:
        task = asyncio.create_task(self._email.send_notification_email(email, notification))
        self._email_tasks.add(task)
        task.add_done_callback(self._email_tasks.discard)


__all__ = ["NotificationDispatcher"]

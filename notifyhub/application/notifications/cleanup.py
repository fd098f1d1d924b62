"""Periodic removal of expired notifications."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

from notifyhub.utils import now_in_app_timezone

from .ports import NotificationStore

logger = logging.getLogger(__name__)


def purge_expired_notifications(
    store: NotificationStore,
    *,
    now: datetime | None = None,
    retention_days: int = 30,
) -> int:
    """Delete expired notifications and read ones older than the retention window."""

    now = now or now_in_app_timezone()
    deleted = store.delete_expired(now=now, read_before=now - timedelta(days=retention_days))
    if deleted:
        logger.info("Removed %s expired notification(s)", deleted)
    return deleted


async def run_cleanup_loop(
    store: NotificationStore,
    *,
    interval_seconds: float,
    retention_days: int = 30,
) -> None:
    """Run :func:`purge_expired_notifications` every ``interval_seconds`` until cancelled."""

    while True:
        await asyncio.sleep(interval_seconds)
        try:
            purge_expired_notifications(store, retention_days=retention_days)
        except Exception:
            logger.exception("Notification cleanup sweep failed")


__all__ = ["purge_expired_notifications", "run_cleanup_loop"]

"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notifyhub.application.notifications import NotificationDispatcher, run_cleanup_loop
from notifyhub.config import get_settings
from notifyhub.infrastructure.database import SessionLocal, engine, initialize_database
from notifyhub.infrastructure.email import EmailService, build_mail_transport
from notifyhub.infrastructure.notifications import ConnectionRegistry
from notifyhub.infrastructure.notifications.stores import (
    DatabaseNotificationStore,
    DatabaseUserDirectory,
)
from notifyhub.interfaces.api.routes import register_routes
from notifyhub.utils import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the notification services on startup and release them on shutdown."""

    settings = get_settings()
    configure_logging(settings.log_level)
    initialize_database()

    store = DatabaseNotificationStore(SessionLocal)
    directory = DatabaseUserDirectory(SessionLocal)
    registry = ConnectionRegistry()
    email_service = EmailService.from_settings(settings, build_mail_transport(settings))
    dispatcher = NotificationDispatcher(
        store=store,
        directory=directory,
        push_channel=registry,
        email_sender=email_service,
        retention_days=settings.notification_retention_days,
        summary_size=settings.notification_summary_size,
    )

    app.state.notification_store = store
    app.state.user_directory = directory
    app.state.registry = registry
    app.state.email_service = email_service
    app.state.dispatcher = dispatcher

    await email_service.initialize()
    cleanup_task = asyncio.create_task(
        run_cleanup_loop(
            store,
            interval_seconds=settings.notification_cleanup_interval_seconds,
            retention_days=settings.notification_retention_days,
        )
    )
    logger.info("%s notification service started", settings.app_name)
    try:
        yield
    finally:
        cleanup_task.cancel()
        with suppress(asyncio.CancelledError):
            await cleanup_task
        await dispatcher.join()
        await email_service.aclose()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()

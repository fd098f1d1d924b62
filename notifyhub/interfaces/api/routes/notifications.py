"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from notifyhub.application.notifications import (
    NotificationDispatcher,
    NotificationNotFoundError,
    NotificationPersistenceError,
    clear_notifications,
    delete_notification,
    get_notification_summary,
    list_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
)
from notifyhub.application.notifications.ports import NotificationStore, UserDirectory
from notifyhub.domain.entities import (
    Notification,
    NotificationFilters,
    NotificationPreferences,
    NotificationPriority,
    NotificationType,
    User,
)
from notifyhub.infrastructure.database import SessionLocal
from notifyhub.infrastructure.notifications import (
    ConnectionRegistry,
    list_message,
    preferences_message,
)
from notifyhub.interfaces.api.dependencies import (
    get_current_active_user,
    get_dispatcher,
    get_notification_store,
    get_registry,
    get_user_directory,
    require_admin,
    resolve_current_user,
)
from notifyhub.interfaces.api.schemas import (
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

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

MAX_PAGE_SIZE = 100


def _dispatch_response(notifications: list[Notification]) -> DispatchResponse:
    return DispatchResponse(
        delivered_to=len(notifications),
        notifications=[NotificationRead.from_entity(n) for n in notifications],
    )


def _current_preferences(directory: UserDirectory, user_id: int) -> NotificationPreferences:
    user = directory.get_user(user_id)
    if user is None or user.notification_preferences is None:
        return NotificationPreferences()
    return user.notification_preferences


@router.get("", response_model=NotificationListResponse)
def list_user_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    unread_only: bool = False,
    type: NotificationType | None = None,
    priority: NotificationPriority | None = None,
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_active_user),
) -> NotificationListResponse:
    """Return a page of the authenticated user's notifications, newest first."""

    filters = NotificationFilters(
        page=page, limit=limit, unread_only=unread_only, type=type, priority=priority
    )
    return NotificationListResponse.from_page(
        list_notifications(store, current_user.id, filters)
    )


@router.get("/summary", response_model=NotificationSummaryRead)
def notification_summary(
    limit: int = Query(5, ge=1, le=MAX_PAGE_SIZE),
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_active_user),
) -> NotificationSummaryRead:
    unread_count, recent = get_notification_summary(store, current_user.id, limit=limit)
    return NotificationSummaryRead(
        unread_count=unread_count,
        recent_notifications=[NotificationRead.from_entity(n) for n in recent],
    )


@router.get("/status", response_model=ConnectionStatusRead)
def connection_status(
    registry: ConnectionRegistry = Depends(get_registry),
    current_user: User = Depends(get_current_active_user),
) -> ConnectionStatusRead:
    """Report whether the authenticated user has live websocket sessions."""

    return ConnectionStatusRead(
        **registry.connection_status(current_user.id),
        connected_users=registry.connected_users_count(),
    )


@router.get("/preferences", response_model=NotificationPreferencesSchema)
def read_preferences(
    directory: UserDirectory = Depends(get_user_directory),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPreferencesSchema:
    return NotificationPreferencesSchema.from_entity(
        _current_preferences(directory, current_user.id)
    )


@router.put("/preferences", response_model=NotificationPreferencesSchema)
async def update_preferences(
    payload: NotificationPreferencesSchema,
    directory: UserDirectory = Depends(get_user_directory),
    registry: ConnectionRegistry = Depends(get_registry),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPreferencesSchema:
    """Replace the authenticated user's preferences and sync their open sessions."""

    try:
        stored = directory.update_preferences(current_user.id, payload.to_entity())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    await registry.send_to_user(current_user.id, preferences_message(stored))
    return NotificationPreferencesSchema.from_entity(stored)


@router.patch("/read-all", response_model=NotificationCountResponse)
async def mark_all_as_read(
    store: NotificationStore = Depends(get_notification_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_active_user),
) -> NotificationCountResponse:
    updated = mark_all_notifications_as_read(store, current_user.id)
    await dispatcher.send_summary(current_user.id)
    return NotificationCountResponse(count=updated)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_as_read(
    notification_id: int,
    store: NotificationStore = Depends(get_notification_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    try:
        notification = mark_notification_as_read(
            store, notification_id, user_id=current_user.id
        )
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    await dispatcher.send_summary(current_user.id)
    return NotificationRead.from_entity(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_notification(
    notification_id: int,
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    try:
        delete_notification(store, notification_id, user_id=current_user.id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", response_model=NotificationCountResponse)
def remove_all_notifications(
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_active_user),
) -> NotificationCountResponse:
    return NotificationCountResponse(count=clear_notifications(store, current_user.id))


@router.post("", response_model=DispatchResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    _: User = Depends(require_admin),
) -> DispatchResponse:
    """Send a notification to an explicit list of users."""

    try:
        notifications = await dispatcher.send_notification(
            payload.to_request(payload.recipients)
        )
    except NotificationPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notification could not be stored",
        ) from exc
    return _dispatch_response(notifications)


@router.post("/broadcast", response_model=DispatchResponse, status_code=status.HTTP_201_CREATED)
async def broadcast_notification(
    payload: NotificationBroadcast,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    _: User = Depends(require_admin),
) -> DispatchResponse:
    """Send a notification to every active user, or to those holding ``role``."""

    request = payload.to_request([])
    try:
        if payload.role:
            notifications = await dispatcher.broadcast_to_role(payload.role, request)
        else:
            notifications = await dispatcher.broadcast_to_all(request)
    except NotificationPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notification could not be stored",
        ) from exc
    return _dispatch_response(notifications)


def _filters_from_message(filters: dict[str, Any]) -> NotificationFilters:
    return NotificationFilters(
        page=max(int(filters.get("page") or 1), 1),
        limit=min(max(int(filters.get("limit") or 20), 1), MAX_PAGE_SIZE),
        unread_only=bool(filters.get("unread_only", False)),
        type=NotificationType(filters["type"]) if filters.get("type") else None,
        priority=NotificationPriority(filters["priority"]) if filters.get("priority") else None,
    )


async def _handle_client_message(
    websocket: WebSocket, user: User, message: dict[str, Any]
) -> None:
    state = websocket.app.state
    dispatcher: NotificationDispatcher = state.dispatcher
    store: NotificationStore = state.notification_store
    directory: UserDirectory = state.user_directory
    registry: ConnectionRegistry = state.registry

    message_type = message.get("type")
    if message_type == "ping":
        await websocket.send_json({"type": "pong"})
        return

    if message_type == "mark_read":
        ids = message.get("ids", [])
        if not isinstance(ids, list):
            return
        for notification_id in ids:
            try:
                mark_notification_as_read(store, int(notification_id), user_id=user.id)
            except (NotificationNotFoundError, TypeError, ValueError):
                logger.debug("Ignoring mark_read for %r from user %s", notification_id, user.id)
        await dispatcher.send_summary(user.id)
        return

    if message_type == "mark_all_read":
        mark_all_notifications_as_read(store, user.id)
        await dispatcher.send_summary(user.id)
        return

    if message_type == "get_notifications":
        try:
            filters = _filters_from_message(message.get("filters") or {})
        except (AttributeError, TypeError, ValueError):
            logger.warning("Invalid notification filters from user %s: %r", user.id, message)
            return
        await websocket.send_json(list_message(list_notifications(store, user.id, filters)))
        return

    if message_type == "update_preferences":
        update = message.get("preferences")
        try:
            merged = _current_preferences(directory, user.id).merged(update)
        except (AttributeError, TypeError):
            logger.warning("Invalid preferences update from user %s", user.id)
            return
        stored = directory.update_preferences(user.id, merged)
        await registry.send_to_user(user.id, preferences_message(stored))
        return


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    except HTTPException:
        await websocket.close(code=1008)
        return
    finally:
        session.close()

    registry: ConnectionRegistry = websocket.app.state.registry
    dispatcher: NotificationDispatcher = websocket.app.state.dispatcher

    session_id = await registry.connect(user.id, websocket)
    try:
        await dispatcher.handle_connect(user.id)
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if isinstance(message, dict):
                await _handle_client_message(websocket, user, message)
    except WebSocketDisconnect:
        pass
    finally:
        registry.remove_connection(user.id, session_id)

"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from notifyhub.domain.entities import (
    Notification,
    NotificationFilters,
    NotificationPriority,
    NotificationType,
)
from notifyhub.infrastructure.models import NotificationModel
from notifyhub.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def find_by_user(
        self, user_id: int, filters: NotificationFilters
    ) -> Sequence[Notification]:
        query = self._filtered(user_id, filters).order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        query = query.offset(filters.offset).limit(filters.limit)
        return [self._to_entity(model) for model in query.all()]

    def count_for_user(self, user_id: int, filters: NotificationFilters) -> int:
        return self._filtered(user_id, filters).count()

    def count_unread(self, user_id: int) -> int:
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .count()
        )

    def list_unread(self, user_id: int, *, limit: int = 5) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .order_by(
                NotificationModel.created_at.desc(), NotificationModel.id.desc()
            )
            .limit(limit)
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_read(self, notification_id: int, *, user_id: int) -> Notification | None:
        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .filter(NotificationModel.user_id == user_id)
            .one_or_none()
        )
        if model is None:
            return None
        if not model.read:
            model.read = True
            model.updated_at = ensure_app_naive_datetime(now_in_app_timezone())
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_all_read(self, user_id: int) -> int:
        updated = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .update(
                {
                    NotificationModel.read: True,
                    NotificationModel.updated_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def delete(self, notification_id: int, *, user_id: int) -> bool:
        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .filter(NotificationModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted > 0

    def delete_for_user(self, user_id: int) -> int:
        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def delete_expired(self, *, now: datetime, read_before: datetime) -> int:
        """Remove expired notifications and read ones created before ``read_before``."""

        deleted = (
            self.session.query(NotificationModel)
            .filter(
                or_(
                    and_(
                        NotificationModel.expires_at.is_not(None),
                        NotificationModel.expires_at < ensure_app_naive_datetime(now),
                    ),
                    and_(
                        NotificationModel.read.is_(True),
                        NotificationModel.created_at
                        < ensure_app_naive_datetime(read_before),
                    ),
                )
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _filtered(self, user_id: int, filters: NotificationFilters) -> Query:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )
        if filters.unread_only:
            query = query.filter(NotificationModel.read.is_(False))
        if filters.type is not None:
            query = query.filter(NotificationModel.type == NotificationType(filters.type).value)
        if filters.priority is not None:
            query = query.filter(
                NotificationModel.priority == NotificationPriority(filters.priority).value
            )
        return query

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        now = now_in_app_timezone()
        model.user_id = notification.user_id
        model.type = NotificationType(notification.type).value
        model.title = notification.title
        model.message = notification.message
        model.priority = NotificationPriority(notification.priority).value
        model.read = notification.read
        model.actionable = notification.actionable
        model.action = notification.action
        model.link = notification.link
        model.payload = notification.metadata or {}
        model.created_at = ensure_app_naive_datetime(notification.created_at or now)
        model.updated_at = ensure_app_naive_datetime(notification.updated_at or now)
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            priority=NotificationPriority(model.priority),
            read=bool(model.read),
            actionable=bool(model.actionable),
            action=model.action,
            link=model.link,
            metadata=dict(model.payload or {}),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
            expires_at=ensure_app_timezone(model.expires_at),
        )


__all__ = ["NotificationRepository"]

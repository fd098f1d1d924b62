"""Persistence layer for notification recipients."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from notifyhub.domain.entities import NotificationPreferences, Role, User
from notifyhub.infrastructure.models import RoleModel, UserModel


class UserRepository:
    """Read users and persist their notification preferences."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self._get_model(id=user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = self._get_model(email=email)
        return self._to_entity(model) if model else None

    def list_ids(self, *, role: str | None = None) -> list[int]:
        """Return ids of active users, optionally restricted to a role alias."""

        query = (
            self.session.query(UserModel.id)
            .filter(UserModel.deleted.is_(False))
            .filter(UserModel.is_active.is_(True))
        )
        if role is not None:
            query = query.join(RoleModel, UserModel.role_id == RoleModel.id).filter(
                func.lower(RoleModel.alias) == role.lower()
            )
        return [user_id for (user_id,) in query.order_by(UserModel.id).all()]

    def create(self, user: User) -> User:
        model = UserModel()
        model.role_id = user.role.id
        model.name = user.name
        model.email = user.email
        model.is_active = user.is_active
        model.notification_preferences = (
            user.notification_preferences.to_dict()
            if user.notification_preferences is not None
            else None
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        if model.role is None:
            self.session.refresh(model, attribute_names=["role"])
        return self._to_entity(model)

    def update_preferences(
        self, user_id: int, preferences: NotificationPreferences
    ) -> NotificationPreferences:
        model = self._get_model(id=user_id)
        if not model:
            msg = f"User with id {user_id} not found"
            raise ValueError(msg)
        model.notification_preferences = preferences.to_dict()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return NotificationPreferences.from_dict(model.notification_preferences)

    def _get_model(self, **filters) -> UserModel | None:
        return (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.deleted.is_(False))
            .filter_by(**filters)
            .first()
        )

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        preferences = None
        if model.notification_preferences:
            preferences = NotificationPreferences.from_dict(model.notification_preferences)
        return User(
            id=model.id,
            role=UserRepository._role_to_entity(model.role),
            name=model.name,
            email=model.email,
            is_active=model.is_active,
            notification_preferences=preferences,
        )

    @staticmethod
    def _role_to_entity(model_role) -> Role:
        if model_role is None:
            msg = "User role is not set"
            raise ValueError(msg)
        return Role(id=model_role.id, name=model_role.name, alias=model_role.alias)


__all__ = ["UserRepository"]

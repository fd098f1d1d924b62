"""Fixtures for exercising the HTTP and websocket API."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from notifyhub.domain.entities import User
from notifyhub.infrastructure.database import SessionLocal
from notifyhub.infrastructure.repositories import RoleRepository, UserRepository
from notifyhub.infrastructure.security import create_user_token


@dataclass
class ApiUser:
    user: User
    token: str

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def _create_user(name: str, email: str, *, role_alias: str, active: bool = True) -> ApiUser:
    session = SessionLocal()
    try:
        role = RoleRepository(session).get_or_create(
            name=role_alias.title(), alias=role_alias
        )
        user = UserRepository(session).create(
            User(id=None, role=role, name=name, email=email, is_active=active)
        )
    finally:
        session.close()
    return ApiUser(user=user, token=create_user_token(user.id))


@pytest.fixture()
def app():
    from notifyhub.main import create_app

    return create_app()


@pytest.fixture()
def client(app):
    """Return a test client bound to a clean application instance."""

    from notifyhub.infrastructure import database

    with TestClient(app) as test_client:
        database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
        database.Base.metadata.create_all(bind=database.engine)
        yield test_client


@pytest.fixture()
def admin(client) -> ApiUser:
    return _create_user("Ada Admin", "ada@example.com", role_alias="admin")


@pytest.fixture()
def member(client) -> ApiUser:
    return _create_user("Max Member", "max@example.com", role_alias="member")


@pytest.fixture()
def inactive(client) -> ApiUser:
    return _create_user("Ian Inactive", "ian@example.com", role_alias="member", active=False)

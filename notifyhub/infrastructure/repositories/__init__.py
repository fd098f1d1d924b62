"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .role_repository import RoleRepository
from .user_repository import UserRepository

__all__ = ["NotificationRepository", "RoleRepository", "UserRepository"]

"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .role import RoleModel
from .user import UserModel

__all__ = ["NotificationModel", "RoleModel", "UserModel"]

"""Domain entity representing a notification recipient."""

from dataclasses import dataclass

from .preferences import NotificationPreferences
from .role import Role


@dataclass
class User:
    """Directory attributes needed to deliver notifications to a user."""

    id: int | None
    role: Role
    name: str
    email: str | None
    is_active: bool = True
    notification_preferences: NotificationPreferences | None = None

    def has_role(self, alias: str) -> bool:
        """Return ``True`` when the user's role alias matches ``alias``."""

        return self.role.alias.lower() == alias.lower()

    def is_admin(self) -> bool:
        """Return ``True`` when the user is an administrator."""

        return self.has_role("admin")


__all__ = ["User"]

"""Errors surfaced by the notification use cases."""


class NotificationPersistenceError(RuntimeError):
    """Raised when a notification record could not be stored."""

    def __init__(self, user_id: int, cause: Exception) -> None:
        super().__init__(f"Could not persist notification for user {user_id}: {cause}")
        self.user_id = user_id
        self.cause = cause


class NotificationNotFoundError(LookupError):
    """Raised when a notification does not exist for the requesting user."""


__all__ = ["NotificationNotFoundError", "NotificationPersistenceError"]

"""Per-user notification preferences and resolved delivery channels."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Mapping


@dataclass
class ChannelPreferences:
    """Per-category switches for one delivery channel."""

    task_assigned: bool = True
    task_due: bool = True
    project_updates: bool = True
    meeting_reminders: bool = True
    feedback_response: bool = True
    system_alerts: bool = True
    team_activity: bool = True

    def is_enabled(self, category: str) -> bool:
        return bool(getattr(self, category))

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any] | None, *, defaults: "ChannelPreferences | None" = None
    ) -> "ChannelPreferences":
        base = defaults or cls()
        values = asdict(base)
        for item in fields(cls):
            if data and item.name in data and data[item.name] is not None:
                values[item.name] = bool(data[item.name])
        return cls(**values)


@dataclass
class RealTimePreferences:
    enabled: bool = True
    sound: bool = True
    desktop: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "RealTimePreferences":
        values = asdict(cls())
        for item in fields(cls):
            if data and item.name in data and data[item.name] is not None:
                values[item.name] = bool(data[item.name])
        return cls(**values)


def _default_email_preferences() -> ChannelPreferences:
    return ChannelPreferences(team_activity=False)


@dataclass
class NotificationPreferences:
    """Channel settings stored for a user.

    Everything is opt-in by default except team activity emails.
    """

    email: ChannelPreferences = field(default_factory=_default_email_preferences)
    push: ChannelPreferences = field(default_factory=ChannelPreferences)
    real_time: RealTimePreferences = field(default_factory=RealTimePreferences)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "NotificationPreferences":
        """Build preferences from stored JSON, filling missing keys with defaults."""

        data = data or {}
        return cls(
            email=ChannelPreferences.from_dict(
                data.get("email"), defaults=_default_email_preferences()
            ),
            push=ChannelPreferences.from_dict(data.get("push")),
            real_time=RealTimePreferences.from_dict(data.get("real_time")),
        )

    def merged(self, update: Mapping[str, Any] | None) -> "NotificationPreferences":
        """Return a copy with the keys present in ``update`` overridden."""

        data = self.to_dict()
        for group, values in (update or {}).items():
            if group in data and isinstance(values, Mapping):
                data[group].update(values)
        return NotificationPreferences.from_dict(data)


@dataclass(frozen=True)
class DeliveryChannels:
    """Channels that fire for one recipient and notification type."""

    email: bool
    push: bool
    real_time: bool

    @classmethod
    def suppressed(cls) -> "DeliveryChannels":
        return cls(email=False, push=False, real_time=False)


__all__ = [
    "ChannelPreferences",
    "DeliveryChannels",
    "NotificationPreferences",
    "RealTimePreferences",
]

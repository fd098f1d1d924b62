"""Realtime notification helpers for the infrastructure layer."""

from .publisher import (
    list_message,
    notification_message,
    preferences_message,
    serialize_notification,
    summary_message,
)
from .registry import ConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "list_message",
    "notification_message",
    "preferences_message",
    "serialize_notification",
    "summary_message",
]

"""Jellyfin webhook event -> WhatsApp message text.

Pure and deterministic. Fields are read permissively: a missing or null field
renders as an empty string instead of failing the notification.
"""

from enum import Enum
from typing import Any, Mapping

from jellyzap.errors import UnsupportedNotificationKind

NOTIFICATION_TYPE_FIELD = "NotificationType"


class NotificationKind(str, Enum):
    ITEM_ADDED = "ItemAdded"
    PLAYBACK_START = "PlaybackStart"
    PLAYBACK_STOP = "PlaybackStop"
    AUTHENTICATION_SUCCESS = "AuthenticationSuccess"
    AUTHENTICATION_FAILURE = "AuthenticationFailure"

    @classmethod
    def parse(cls, value: Any) -> "NotificationKind":
        """Exact, case-sensitive match. Raises UnsupportedNotificationKind otherwise."""
        if isinstance(value, str):
            for kind in cls:
                if kind.value == value:
                    return kind
        raise UnsupportedNotificationKind(value)


TEMPLATES: dict[NotificationKind, str] = {
    NotificationKind.ITEM_ADDED: (
        "New {ItemType} Added\nName: {Name}\nRuntime: {RunTime}\nPremiere Date: {PremiereDate}"
    ),
    NotificationKind.PLAYBACK_START: "{NotificationUsername} started watching\n{Name}",
    NotificationKind.PLAYBACK_STOP: "{NotificationUsername} stopped watching\n{Name}",
    NotificationKind.AUTHENTICATION_SUCCESS: "Successful Login\n{NotificationUsername} Logged in",
    NotificationKind.AUTHENTICATION_FAILURE: "Failed Login Attempt\n{Username} login attempt failed",
}


def render_field(value: Any) -> str:
    """
    JSON value -> message text. null renders as "", booleans lowercase, whole
    floats without ".0", arrays comma-joined, objects as "[object Object]".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Mapping):
        return "[object Object]"
    if isinstance(value, (list, tuple)):
        return ",".join(render_field(item) for item in value)
    return str(value)


class _EventFields:
    """format_map() view over an event with an empty-string default."""

    def __init__(self, event: Mapping[str, Any]):
        self._event = event

    def __getitem__(self, key: str) -> str:
        return render_field(self._event.get(key))


def translate(event: Mapping[str, Any]) -> str:
    """Build the message body for a webhook event."""
    kind = NotificationKind.parse(event.get(NOTIFICATION_TYPE_FIELD))
    return TEMPLATES[kind].format_map(_EventFields(event))

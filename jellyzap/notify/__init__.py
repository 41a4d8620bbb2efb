"""Jellyfin notification translation."""

from jellyzap.notify.translator import NotificationKind, translate

__all__ = ["NotificationKind", "translate"]

"""Transient user-facing notifications."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from listing_desk.models.enums import NotificationLevel

DEFAULT_DURATION_SECONDS = 5.0


@dataclass
class Notification:
    """One message shown to the user until it expires.

    ``duration`` of zero keeps the notification until it is dismissed.
    """

    level: NotificationLevel
    message: str
    created_at: float
    duration: float = DEFAULT_DURATION_SECONDS

    def expired(self, now: float) -> bool:
        """Whether the notification should no longer be shown at ``now``."""
        return self.duration > 0 and now - self.created_at >= self.duration


class NotificationCenter:
    """Holds active notifications and drops them once they expire.

    There are no timers: expired entries are dropped on every ``push()`` and
    ``active()`` call, against the injected monotonic clock.
    """

    def __init__(
        self,
        duration: float = DEFAULT_DURATION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.duration = duration
        self._clock = clock
        self._items: list[Notification] = []

    def push(self, level: NotificationLevel | str, message: str) -> Notification:
        now = self._clock()
        self._prune(now)
        notification = Notification(
            level=NotificationLevel(level),
            message=message,
            created_at=now,
            duration=self.duration,
        )
        self._items.append(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.push(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self.push(NotificationLevel.ERROR, message)

    def warning(self, message: str) -> Notification:
        return self.push(NotificationLevel.WARNING, message)

    def info(self, message: str) -> Notification:
        return self.push(NotificationLevel.INFO, message)

    def dismiss(self, notification: Notification) -> None:
        if notification in self._items:
            self._items.remove(notification)

    def active(self) -> list[Notification]:
        """Unexpired notifications, oldest first."""
        self._prune(self._clock())
        return list(self._items)

    def _prune(self, now: float) -> None:
        self._items = [n for n in self._items if not n.expired(now)]

    def __len__(self) -> int:
        return len(self._items)

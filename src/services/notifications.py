"""
User-visible notifications (toasts).

Services do not raise toasts as a side effect; they publish onto a
NotificationChannel they were given. The API drains the channel into its
responses and tests inspect it directly.
"""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, List

from ..utils.logging import get_logger

logger = get_logger(__name__)


class Severity(str, enum.Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    severity: Severity = Severity.DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


Subscriber = Callable[[Notification], None]


class NotificationChannel:
    """FIFO of pending notifications with optional live subscribers."""

    def __init__(self) -> None:
        self._pending: Deque[Notification] = deque()
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def publish(self, notification: Notification) -> None:
        if notification.severity is Severity.DESTRUCTIVE:
            logger.warning(f"{notification.title}: {notification.description}")
        else:
            logger.info(f"{notification.title}: {notification.description}")
        self._pending.append(notification)
        for callback in self._subscribers:
            callback(notification)

    def success(self, description: str) -> None:
        self.publish(Notification("Success", description))

    def error(self, description: str) -> None:
        self.publish(Notification("Error", description, Severity.DESTRUCTIVE))

    def drain(self) -> List[Notification]:
        """Return and clear every pending notification, oldest first."""
        items = list(self._pending)
        self._pending.clear()
        return items

    def __len__(self) -> int:
        return len(self._pending)

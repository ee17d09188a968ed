from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Protocol

logger = logging.getLogger("notifications")


@dataclass
class Notification:
    level: str
    message: str
    created_at: float

    def to_dict(self) -> dict:
        return asdict(self)


class Notifier(Protocol):
    def notify(self, level: str, message: str) -> None:
        ...


class LoggingNotifier:
    def notify(self, level: str, message: str) -> None:
        log_level = {
            "error": logging.ERROR,
            "warning": logging.WARNING,
        }.get(level, logging.INFO)
        logger.log(log_level, "[NOTICE] %s", message)


class BufferedNotifier(LoggingNotifier):
    """Keeps the latest notices so a polling client can display them."""

    def __init__(self, max_items: int = 50):
        self._items: deque[Notification] = deque(maxlen=max(1, int(max_items)))

    def notify(self, level: str, message: str) -> None:
        super().notify(level, message)
        self._items.append(Notification(level=level, message=message, created_at=time.time()))

    def recent(self, since: float = 0.0) -> list[dict]:
        return [item.to_dict() for item in self._items if item.created_at > since]

    def clear(self) -> None:
        self._items.clear()

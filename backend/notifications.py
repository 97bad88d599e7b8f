# notifications.py — User-facing toast notifications
"""
Services report every failure twice: to the operator log and to the user as a
transient toast. Toasts are pushed to a Notifier; the default
NotificationCenter keeps the most recent ones in memory so the HTTP layer can
hand them to whatever UI is polling.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models import utcnow_iso

logger = logging.getLogger("business-manager.notifications")


class ToastLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Toast:
    level: ToastLevel
    message: str
    source: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:12])
    created_at: str = field(default_factory=utcnow_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level.value,
            "message": self.message,
            "source": self.source,
            "created_at": self.created_at,
        }


class Notifier(ABC):
    @abstractmethod
    def notify(self, level: ToastLevel, message: str, source: Optional[str] = None) -> None:
        ...

    def error(self, message: str, source: Optional[str] = None) -> None:
        self.notify(ToastLevel.ERROR, message, source)

    def success(self, message: str, source: Optional[str] = None) -> None:
        self.notify(ToastLevel.SUCCESS, message, source)

    def info(self, message: str, source: Optional[str] = None) -> None:
        self.notify(ToastLevel.INFO, message, source)


class NotificationCenter(Notifier):
    """Bounded in-memory toast queue"""

    def __init__(self, max_size: int = 500):
        self.max_size = max_size
        self._buffer: deque = deque(maxlen=max_size)

    def notify(self, level: ToastLevel, message: str, source: Optional[str] = None) -> None:
        if not message:
            return
        toast = Toast(level=level, message=message, source=source)
        self._buffer.append(toast)
        logger.debug(f"toast[{level.value}] {message}")

    def pending(self, level: Optional[ToastLevel] = None, limit: int = 100) -> List[Toast]:
        items = [t for t in self._buffer if level is None or t.level == level]
        return items[-limit:] if len(items) > limit else items

    def drain(self) -> List[Toast]:
        items = list(self._buffer)
        self._buffer.clear()
        return items

    def clear(self) -> int:
        count = len(self._buffer)
        self._buffer.clear()
        return count

    def __len__(self) -> int:
        return len(self._buffer)

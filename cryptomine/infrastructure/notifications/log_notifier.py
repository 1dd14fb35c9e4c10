import logging
from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import List

from cryptomine.core.services.notifier import Notification, NotificationKind, Notifier


logger = logging.getLogger(__name__)


class LoggingNotifier(Notifier):
    def notify(self, message: str, kind: NotificationKind) -> None:
        if kind is NotificationKind.ERROR:
            logger.warning("Notification [%s]: %s", kind.value, message)
        else:
            logger.info("Notification [%s]: %s", kind.value, message)


class RecordingNotifier(LoggingNotifier):
    """Хранит последние уведомления, чтобы интерфейс мог их забрать"""
    def __init__(self, history: int = 50):
        self._items: deque = deque(maxlen=history)
        self._lock = Lock()

    def notify(self, message: str, kind: NotificationKind) -> None:
        super().notify(message, kind)
        item = Notification(message=message, kind=kind, created_at=datetime.now(timezone.utc).isoformat())
        with self._lock:
            self._items.append(item)

    def recent(self) -> List[Notification]:
        with self._lock:
            return list(self._items)

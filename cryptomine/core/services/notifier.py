from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Notification:
    message: str
    kind: NotificationKind
    created_at: str


class Notifier(ABC):
    """Аналог toast в интерфейсе: получил сообщение и забыл, результат никому не нужен"""
    @abstractmethod
    def notify(self, message: str, kind: NotificationKind) -> None:...

    def success(self, message: str) -> None:
        self.notify(message, NotificationKind.SUCCESS)

    def error(self, message: str) -> None:
        self.notify(message, NotificationKind.ERROR)

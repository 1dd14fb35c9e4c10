from abc import ABC, abstractmethod
from typing import Callable


class TaskHandle(ABC):
    @abstractmethod
    def stop(self) -> None:...

    @property
    @abstractmethod
    def active(self) -> bool:...


class TaskScheduler(ABC):
    @abstractmethod
    def schedule_interval(self, func: Callable[[], None], seconds: float, name: str) -> TaskHandle:...

    @abstractmethod
    def shutdown(self) -> None:...

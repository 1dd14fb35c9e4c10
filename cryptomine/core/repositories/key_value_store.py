from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional


class KeyValueStore(ABC):
    """Строковые ключи, значения сериализуются в JSON"""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:...

    @abstractmethod
    def delete(self, key: str) -> None:...

    @abstractmethod
    def update(self, key: str, fn: Callable[[Any], Any], default: Optional[Any] = None) -> Any:...

    @abstractmethod
    def transaction(self) -> AbstractContextManager:...

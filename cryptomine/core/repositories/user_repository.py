from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, List
from cryptomine.core.entities.user import User


class UserRepository(ABC):
    @abstractmethod
    def atomic(self) -> AbstractContextManager:...

    @abstractmethod
    def list_users(self) -> List[User]:...

    @abstractmethod
    def find_by_identifier(self, identifier: str) -> Optional[User]:...

    @abstractmethod
    def find_conflict(self, username: str, email: str) -> Optional[User]:...

    @abstractmethod
    def create_user(self, user: User, password_hash: Optional[str] = None) -> User:...

    @abstractmethod
    def get_password_hash(self, user_id: str) -> Optional[str]:...

    @abstractmethod
    def get_current(self) -> Optional[User]:...

    @abstractmethod
    def set_current(self, user: User) -> None:...

    @abstractmethod
    def clear_current(self) -> None:...

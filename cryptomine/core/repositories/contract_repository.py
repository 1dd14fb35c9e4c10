from abc import ABC, abstractmethod
from typing import Callable, List
from cryptomine.core.entities.contract import Contract


class ContractRepository(ABC):
    @abstractmethod
    def list_for_user(self, user_id: str) -> List[Contract]:...

    @abstractmethod
    def add(self, contract: Contract) -> Contract:...

    @abstractmethod
    def update_for_user(self, user_id: str, fn: Callable[[List[Contract]], List[Contract]]) -> List[Contract]:...

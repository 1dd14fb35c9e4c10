from abc import ABC, abstractmethod


class PriceFeed(ABC):
    """Источник цены BTC для пересчёта заработка во вторичную единицу"""
    @property
    @abstractmethod
    def current(self) -> float:...

    @abstractmethod
    def step(self) -> float:...

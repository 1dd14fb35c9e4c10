import logging
from threading import Lock
from typing import Optional

import numpy as np

from cryptomine.core.services.price_feed import PriceFeed


logger = logging.getLogger(__name__)


class RandomWalkPriceFeed(PriceFeed):
    """Симуляция цены BTC: случайное блуждание без нижней и верхней границы"""
    def __init__(self, start: float = 67500.0, max_step: float = 50.0, seed: Optional[int] = None):
        self.max_step = max_step
        self._price = float(start)
        self._rng = np.random.default_rng(seed)
        self._lock = Lock()

    @property
    def current(self) -> float:
        with self._lock:
            return self._price

    def step(self) -> float:
        delta = float(self._rng.uniform(-self.max_step, self.max_step))
        with self._lock:
            self._price += delta
            price = self._price
        logger.debug("Unit price moved by %.2f to %.2f", delta, price)
        return price

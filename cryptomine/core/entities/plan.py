from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    price: float              # 0 = бесплатный тариф
    daily_earnings: float     # валюта в сутки
    hash_rate: str            # только для отображения
    duration: int             # дней
    features: Tuple[str, ...] = field(default_factory=tuple)
    popular: bool = False

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @property
    def total_return(self) -> float:
        return self.daily_earnings * self.duration

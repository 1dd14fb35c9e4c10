from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any


def parse_timestamp(value: str) -> datetime:
    # старые записи браузера хранят время как "...Z", fromisoformat до 3.11 его не понимает
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class AccrualMode(str, Enum):
    # legacy: базовая сумма по дням + total_earned от тиков (двойной учёт, как было)
    LEGACY = "legacy"
    # corrected: только прошедшее время, с ограничением по сроку контракта
    CORRECTED = "corrected"


@dataclass
class Contract:
    id: str
    user_id: str
    plan_id: str
    start_date: str
    end_date: str
    total_earned: float = 0.0
    is_active: bool = True

    @property
    def started_at(self) -> datetime:
        return parse_timestamp(self.start_date)

    @property
    def ends_at(self) -> datetime:
        return parse_timestamp(self.end_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "planId": self.plan_id,
            "userId": self.user_id,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "totalEarned": self.total_earned,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Contract":
        return cls(
            id=data["id"],
            user_id=data["userId"],
            plan_id=data["planId"],
            start_date=data["startDate"],
            end_date=data["endDate"],
            total_earned=float(data.get("totalEarned") or 0),
            is_active=bool(data.get("isActive", True)),
        )

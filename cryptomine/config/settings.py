import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else None


@dataclass
class Settings:
    DB_PATH: str = os.getenv("DB_PATH", "./cryptomine.db")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # sign-in checks the bcrypt hash; false keeps the old accept-anything behaviour
    VERIFY_PASSWORDS: bool = _env_bool("VERIFY_PASSWORDS", "true")

    ACCRUAL_MODE: str = os.getenv("ACCRUAL_MODE", "legacy")  # legacy | corrected
    ACCRUAL_INTERVAL_SECONDS: float = float(os.getenv("ACCRUAL_INTERVAL_SECONDS", "3"))
    ACCRUAL_TICKS_PER_DAY: int = int(os.getenv("ACCRUAL_TICKS_PER_DAY", str(24 * 60 * 20)))

    PRICE_WALK_START: float = float(os.getenv("PRICE_WALK_START", "67500"))
    PRICE_WALK_MAX_STEP: float = float(os.getenv("PRICE_WALK_MAX_STEP", "50"))
    PRICE_WALK_INTERVAL_SECONDS: float = float(os.getenv("PRICE_WALK_INTERVAL_SECONDS", "5"))
    PRICE_WALK_SEED: Optional[int] = _env_optional_int("PRICE_WALK_SEED")

    PAYMENT_DELAY_SECONDS: float = float(os.getenv("PAYMENT_DELAY_SECONDS", "2"))

    NOTIFICATION_HISTORY: int = int(os.getenv("NOTIFICATION_HISTORY", "50"))
    SCHEDULER_ENABLED: bool = _env_bool("SCHEDULER_ENABLED", "true")

settings = Settings()

from dataclasses import dataclass

from cryptomine.core.entities.plan import Plan


SUPPORTED_CRYPTO = ("BTC", "ETH", "USDT", "LTC")


@dataclass
class PendingCheckout:
    """Платный тариф выбран, но контракт появится только после confirm_payment"""
    plan: Plan
    amount: float
    crypto_type: str = "BTC"

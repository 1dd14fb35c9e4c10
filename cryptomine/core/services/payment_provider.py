from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from cryptomine.core.entities.plan import Plan
from cryptomine.core.entities.user import User


@dataclass
class PaymentDetails:
    crypto_type: str
    wallet_address: str
    amount: float

@dataclass
class PaymentReceipt:
    success: bool
    amount: float
    transaction_id: str
    message: Optional[str] = None

class PaymentProvider(ABC):
    @abstractmethod
    async def charge(self, user: User, plan: Plan, details: PaymentDetails) -> PaymentReceipt:...

import asyncio
import logging
from uuid import uuid4
from cryptomine.core.entities.plan import Plan
from cryptomine.core.entities.user import User
from cryptomine.core.services.payment_provider import PaymentDetails, PaymentProvider, PaymentReceipt


logger = logging.getLogger(__name__)


class StubPaymentProvider(PaymentProvider):
    """Класс-заглушка: ждёт фиксированную задержку и принимает любые реквизиты"""
    def __init__(self, delay_seconds: float = 2.0):
        self.delay_seconds = delay_seconds

    async def charge(self, user: User, plan: Plan, details: PaymentDetails) -> PaymentReceipt:
        logger.info("Processing %s payment of %s for %s", details.crypto_type, plan.price, user.id)
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        return PaymentReceipt(
            success=True,
            amount=plan.price,
            transaction_id=f"stub-{uuid4()}",
            message="Stub payment approved",
        )

from typing import Dict, Tuple

from cryptomine.core.entities.plan import Plan


# Каталог тарифов фиксирован и загружается один раз
PLAN_CATALOG: Tuple[Plan, ...] = (
    Plan(
        id="free",
        name="Free Starter",
        price=0,
        daily_earnings=0.10,
        hash_rate="1 TH/s",
        duration=30,
        features=("Basic mining power", "30-day contract", "Email support", "Real-time stats"),
    ),
    Plan(
        id="basic",
        name="Basic Miner",
        price=45,
        daily_earnings=17.2,
        hash_rate="25 TH/s",
        duration=90,
        features=("Enhanced mining power", "90-day contract", "Priority support",
                  "Advanced analytics", "Mobile app access"),
    ),
    Plan(
        id="pro",
        name="Pro Miner",
        price=100,
        daily_earnings=37,
        hash_rate="87.5 TH/s",
        duration=180,
        popular=True,
        features=("High-performance mining", "180-day contract", "24/7 support",
                  "Premium analytics", "API access", "Compound earnings"),
    ),
    Plan(
        id="enterprise",
        name="Enterprise",
        price=250,
        daily_earnings=115.4,
        hash_rate="350 TH/s",
        duration=365,
        features=("Maximum mining power", "365-day contract", "Dedicated support",
                  "Custom analytics", "White-label access", "Auto-reinvestment"),
    ),
)

PLANS_BY_ID: Dict[str, Plan] = {plan.id: plan for plan in PLAN_CATALOG}


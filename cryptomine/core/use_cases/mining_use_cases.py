import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Mapping, Optional, Tuple, Union
from uuid import uuid4

from cryptomine.core.entities.checkout import PendingCheckout
from cryptomine.core.entities.contract import AccrualMode, Contract
from cryptomine.core.entities.plan import Plan
from cryptomine.core.entities.user import User
from cryptomine.core.errors import NotFoundError, PaymentError, ValidationError
from cryptomine.core.repositories.contract_repository import ContractRepository
from cryptomine.core.services.payment_provider import PaymentDetails, PaymentProvider


logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
SECONDS_PER_DAY = 24 * 60 * 60
DAYS_PER_MONTH = 30
# тик раз в 3 секунды -> 24 * 60 * 20 тиков в сутки
DEFAULT_TICKS_PER_DAY = 24 * 60 * 20


@dataclass
class ContractView:
    contract: Contract
    plan: Plan
    earnings: float
    base_unit_earnings: float
    days_elapsed: int
    progress: float


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)

def resolve_plan(plans: Mapping[str, Plan], plan_id: str) -> Plan:
    plan = plans.get(plan_id)
    if plan is None:
        raise NotFoundError(f"Unknown plan: {plan_id}")
    return plan

def _with_plans(contracts: List[Contract], plans: Mapping[str, Plan]) -> Iterator[Tuple[Contract, Plan]]:
    for contract in contracts:
        plan = plans.get(contract.plan_id)
        if plan is None:
            # тариф убран из каталога - контракт не отображается и не считается
            logger.warning("Skipping contract %s: unknown plan %s", contract.id, contract.plan_id)
            continue
        yield contract, plan

def _new_contract(user: User, plan: Plan, now: Optional[datetime]) -> Contract:
    start = _now(now)
    return Contract(
        id=f"mining_{uuid4().hex}",
        user_id=user.id,
        plan_id=plan.id,
        start_date=start.isoformat(),
        end_date=(start + timedelta(days=plan.duration)).isoformat(),
        total_earned=0.0,
        is_active=True,
    )

def start_contract(
    repo: ContractRepository,
    user: User,
    plan: Plan,
    now: Optional[datetime] = None,
) -> Union[Contract, PendingCheckout]:
    if plan.is_free:
        contract = repo.add(_new_contract(user, plan, now))
        logger.info("Started %s contract %s for %s", plan.id, contract.id, user.id)
        return contract

    # платный тариф: контракт появится только после confirm_payment
    logger.info("Checkout opened for %s plan by %s", plan.id, user.id)
    return PendingCheckout(plan=plan, amount=plan.price)

async def confirm_payment(
    repo: ContractRepository,
    provider: PaymentProvider,
    user: User,
    plan: Plan,
    details: PaymentDetails,
    now: Optional[datetime] = None,
) -> Contract:
    if plan.is_free:
        raise ValidationError(f"{plan.name} does not require payment")
    receipt = await provider.charge(user, plan, details)
    if not receipt.success:
        raise PaymentError(receipt.message or "Payment processing failed")

    contract = repo.add(_new_contract(user, plan, now))
    logger.info(
        "Payment %s accepted, started %s contract %s for %s",
        receipt.transaction_id, plan.id, contract.id, user.id,
    )
    return contract

def days_elapsed(contract: Contract, now: Optional[datetime] = None) -> int:
    return max(0, (_now(now) - contract.started_at) // ONE_DAY)

def compute_earnings(
    contract: Contract,
    plan: Plan,
    now: Optional[datetime] = None,
    mode: AccrualMode = AccrualMode.LEGACY,
) -> float:
    if mode is AccrualMode.CORRECTED:
        elapsed = max(0.0, (_now(now) - contract.started_at).total_seconds() / SECONDS_PER_DAY)
        return min(elapsed * plan.daily_earnings, plan.total_return)

    # базовая часть ограничена сроком контракта, total_earned - нет
    base = min(days_elapsed(contract, now) * plan.daily_earnings, plan.daily_earnings * plan.duration)
    return base + contract.total_earned

def contract_progress(contract: Contract, plan: Plan, now: Optional[datetime] = None) -> float:
    return min(days_elapsed(contract, now) / plan.duration * 100, 100.0)

def convert_to_base_unit(amount: float, unit_price: float) -> float:
    if unit_price == 0:
        raise ValidationError("Unit price must be non-zero")
    return amount / unit_price

def visible_contracts(repo: ContractRepository, user: User, plans: Mapping[str, Plan]) -> List[Contract]:
    return [contract for contract, _ in _with_plans(repo.list_for_user(user.id), plans)]

def has_active_contracts(repo: ContractRepository, user: User) -> bool:
    return any(c.is_active for c in repo.list_for_user(user.id))

def accrue_tick(
    repo: ContractRepository,
    user: User,
    plans: Mapping[str, Plan],
    mode: AccrualMode = AccrualMode.LEGACY,
    ticks_per_day: int = DEFAULT_TICKS_PER_DAY,
    now: Optional[datetime] = None,
) -> List[Contract]:
    current = _now(now)

    def apply(contracts: List[Contract]) -> List[Contract]:
        for contract in contracts:
            if not contract.is_active:
                continue
            plan = plans.get(contract.plan_id)
            if plan is None:
                continue
            if mode is AccrualMode.CORRECTED:
                # заработок считается по времени, тик только закрывает истёкшие контракты
                if current >= contract.ends_at:
                    contract.is_active = False
                    logger.info("Contract %s completed", contract.id)
                continue
            contract.total_earned += plan.daily_earnings / ticks_per_day
        return contracts

    return repo.update_for_user(user.id, apply)

def total_earnings_across_contracts(
    repo: ContractRepository,
    user: User,
    plans: Mapping[str, Plan],
    now: Optional[datetime] = None,
    mode: AccrualMode = AccrualMode.LEGACY,
) -> float:
    contracts = repo.list_for_user(user.id)
    return sum(compute_earnings(c, plan, now, mode) for c, plan in _with_plans(contracts, plans))

def total_daily_rate(repo: ContractRepository, user: User, plans: Mapping[str, Plan]) -> float:
    active = [c for c in repo.list_for_user(user.id) if c.is_active]
    return sum(plan.daily_earnings for _, plan in _with_plans(active, plans))

def total_base_unit_earnings(
    repo: ContractRepository,
    user: User,
    plans: Mapping[str, Plan],
    unit_price: float,
    now: Optional[datetime] = None,
    mode: AccrualMode = AccrualMode.LEGACY,
) -> float:
    return convert_to_base_unit(total_earnings_across_contracts(repo, user, plans, now, mode), unit_price)

def monthly_projection(daily_rate: float) -> float:
    return daily_rate * DAYS_PER_MONTH

def base_unit_rate_per_second(daily_rate: float, unit_price: float) -> float:
    return convert_to_base_unit(daily_rate, unit_price) / SECONDS_PER_DAY

def list_contract_views(
    repo: ContractRepository,
    user: User,
    plans: Mapping[str, Plan],
    unit_price: float,
    now: Optional[datetime] = None,
    mode: AccrualMode = AccrualMode.LEGACY,
) -> List[ContractView]:
    current = _now(now)
    views = []
    for contract, plan in _with_plans(repo.list_for_user(user.id), plans):
        earnings = compute_earnings(contract, plan, current, mode)
        views.append(ContractView(
            contract=contract,
            plan=plan,
            earnings=earnings,
            base_unit_earnings=convert_to_base_unit(earnings, unit_price),
            days_elapsed=days_elapsed(contract, current),
            progress=contract_progress(contract, plan, current),
        ))
    return views

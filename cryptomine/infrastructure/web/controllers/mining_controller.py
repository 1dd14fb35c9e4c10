from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from cryptomine.core.entities.checkout import SUPPORTED_CRYPTO, PendingCheckout
from cryptomine.core.entities.contract import AccrualMode, Contract
from cryptomine.core.entities.plan import Plan
from cryptomine.core.entities.user import User
from cryptomine.core.errors import AppError
from cryptomine.core.services.payment_provider import PaymentDetails, PaymentProvider
from cryptomine.core.services.price_feed import PriceFeed
from cryptomine.core.use_cases.mining_use_cases import (
    ContractView,
    base_unit_rate_per_second,
    confirm_payment,
    list_contract_views,
    monthly_projection,
    resolve_plan,
    start_contract,
    total_base_unit_earnings,
    total_daily_rate,
    total_earnings_across_contracts,
    visible_contracts,
)
from cryptomine.infrastructure.db.sqlite import SQLiteContractRepository
from cryptomine.infrastructure.notifications.log_notifier import RecordingNotifier
from cryptomine.infrastructure.web.dependencies import (
    get_accrual_mode,
    get_contract_repo,
    get_current_user,
    get_notifier,
    get_payment_provider,
    get_plans,
    get_price_feed,
    to_http_exception,
)


router = APIRouter(prefix="", tags=["mining"])


class PlanResponse(BaseModel):
    id: str
    name: str
    price: float
    daily_earnings: float
    hash_rate: str
    duration: int
    features: List[str]
    popular: bool
    total_return: float

class ContractResponse(BaseModel):
    id: str
    plan_id: str
    start_date: str
    end_date: str
    total_earned: float
    is_active: bool
    earnings: Optional[float] = None
    base_unit_earnings: Optional[float] = None
    days_elapsed: Optional[int] = None
    progress: Optional[float] = None

class CheckoutResponse(BaseModel):
    plan_id: str
    amount: float
    crypto_type: str

class StartContractRequest(BaseModel):
    plan_id: str

class StartContractResponse(BaseModel):
    contract: Optional[ContractResponse] = None
    checkout: Optional[CheckoutResponse] = None

class CheckoutRequest(BaseModel):
    plan_id: str
    crypto_type: str = Field("BTC", description=" | ".join(SUPPORTED_CRYPTO))
    wallet_address: str = ""

class StatsResponse(BaseModel):
    total_earnings: float
    total_daily_rate: float
    monthly_projection: float
    total_base_unit_earnings: float
    base_unit_rate_per_second: float
    unit_price: float
    contracts: int
    active_contracts: int

class PriceResponse(BaseModel):
    unit_price: float


def _plan_response(plan: Plan) -> PlanResponse:
    return PlanResponse(
        id=plan.id,
        name=plan.name,
        price=plan.price,
        daily_earnings=plan.daily_earnings,
        hash_rate=plan.hash_rate,
        duration=plan.duration,
        features=list(plan.features),
        popular=plan.popular,
        total_return=plan.total_return,
    )

def _contract_response(contract: Contract, view: Optional[ContractView] = None) -> ContractResponse:
    response = ContractResponse(
        id=contract.id,
        plan_id=contract.plan_id,
        start_date=contract.start_date,
        end_date=contract.end_date,
        total_earned=contract.total_earned,
        is_active=contract.is_active,
    )
    if view is not None:
        response.earnings = view.earnings
        response.base_unit_earnings = view.base_unit_earnings
        response.days_elapsed = view.days_elapsed
        response.progress = view.progress
    return response

@router.get("/plans", response_model=List[PlanResponse])
def get_plan_catalog(plans: Dict[str, Plan] = Depends(get_plans)):
    return [_plan_response(plan) for plan in plans.values()]

@router.get("/price", response_model=PriceResponse)
def get_price(feed: PriceFeed = Depends(get_price_feed)):
    return PriceResponse(unit_price=feed.current)

@router.post("/contracts", response_model=StartContractResponse, status_code=201)
def start_mining(
    payload: StartContractRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    repo: SQLiteContractRepository = Depends(get_contract_repo),
    plans: Dict[str, Plan] = Depends(get_plans),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    try:
        plan = resolve_plan(plans, payload.plan_id)
        result = start_contract(repo, current_user, plan)
    except AppError as e:
        notifier.error(f"Failed to start mining contract: {e}")
        raise to_http_exception(e)

    if isinstance(result, PendingCheckout):
        # платный тариф - ждём оплату через /checkout
        response.status_code = status.HTTP_202_ACCEPTED
        return StartContractResponse(checkout=CheckoutResponse(
            plan_id=result.plan.id, amount=result.amount, crypto_type=result.crypto_type,
        ))

    notifier.success(f"{plan.name} contract activated successfully!")
    return StartContractResponse(contract=_contract_response(result))

@router.post("/checkout", response_model=ContractResponse, status_code=201)
async def checkout(
    payload: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteContractRepository = Depends(get_contract_repo),
    provider: PaymentProvider = Depends(get_payment_provider),
    plans: Dict[str, Plan] = Depends(get_plans),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    try:
        plan = resolve_plan(plans, payload.plan_id)
        notifier.success("Processing crypto payment...")
        contract = await confirm_payment(
            repo,
            provider,
            current_user,
            plan,
            PaymentDetails(
                crypto_type=payload.crypto_type,
                wallet_address=payload.wallet_address,
                amount=plan.price,
            ),
        )
    except AppError as e:
        notifier.error(f"Payment processing failed: {e}")
        raise to_http_exception(e)
    notifier.success(f"{plan.name} contract activated successfully!")
    return _contract_response(contract)

@router.get("/contracts", response_model=List[ContractResponse])
def get_contracts(
    current_user: User = Depends(get_current_user),
    repo: SQLiteContractRepository = Depends(get_contract_repo),
    plans: Dict[str, Plan] = Depends(get_plans),
    feed: PriceFeed = Depends(get_price_feed),
    mode: AccrualMode = Depends(get_accrual_mode),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    try:
        views = list_contract_views(repo, current_user, plans, unit_price=feed.current, mode=mode)
    except AppError as e:
        notifier.error(str(e))
        raise to_http_exception(e)
    return [_contract_response(view.contract, view) for view in views]

@router.get("/stats", response_model=StatsResponse)
def get_stats(
    current_user: User = Depends(get_current_user),
    repo: SQLiteContractRepository = Depends(get_contract_repo),
    plans: Dict[str, Plan] = Depends(get_plans),
    feed: PriceFeed = Depends(get_price_feed),
    mode: AccrualMode = Depends(get_accrual_mode),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    unit_price = feed.current
    try:
        contracts = visible_contracts(repo, current_user, plans)
        daily_rate = total_daily_rate(repo, current_user, plans)
        stats = StatsResponse(
            total_earnings=total_earnings_across_contracts(repo, current_user, plans, mode=mode),
            total_daily_rate=daily_rate,
            monthly_projection=monthly_projection(daily_rate),
            total_base_unit_earnings=total_base_unit_earnings(repo, current_user, plans, unit_price, mode=mode),
            base_unit_rate_per_second=base_unit_rate_per_second(daily_rate, unit_price),
            unit_price=unit_price,
            contracts=len(contracts),
            active_contracts=sum(1 for c in contracts if c.is_active),
        )
    except AppError as e:
        notifier.error(str(e))
        raise to_http_exception(e)
    return stats

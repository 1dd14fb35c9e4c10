from typing import Dict, Iterator

from fastapi import Depends, HTTPException, Request, status

from cryptomine.config.plans import PLANS_BY_ID
from cryptomine.config.settings import Settings
from cryptomine.core.entities.contract import AccrualMode
from cryptomine.core.entities.plan import Plan
from cryptomine.core.entities.session import SessionContext
from cryptomine.core.entities.user import User
from cryptomine.core.errors import (
    AppError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PaymentError,
    StoreUnavailableError,
    ValidationError,
)
from cryptomine.core.services.payment_provider import PaymentProvider
from cryptomine.core.services.price_feed import PriceFeed
from cryptomine.infrastructure.db.sqlite import (
    Database,
    SQLiteContractRepository,
    SQLiteKeyValueStore,
    SQLiteUserRepository,
)
from cryptomine.infrastructure.notifications.log_notifier import RecordingNotifier
from cryptomine.infrastructure.payments.stub_provider import StubPaymentProvider
from cryptomine.infrastructure.scheduling.jobs import start_accrual


STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PaymentError, status.HTTP_402_PAYMENT_REQUIRED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: AppError) -> int:
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST

def to_http_exception(exc: AppError) -> HTTPException:
    return HTTPException(status_code=status_for(exc), detail=str(exc))

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_database(request: Request) -> Database:
    return request.app.state.database

def get_db(database: Database = Depends(get_database)) -> Iterator[SQLiteKeyValueStore]:
    with database.store() as store:
        yield store

def get_user_repo(store: SQLiteKeyValueStore = Depends(get_db)) -> SQLiteUserRepository:
    return SQLiteUserRepository(store)

def get_contract_repo(store: SQLiteKeyValueStore = Depends(get_db)) -> SQLiteContractRepository:
    return SQLiteContractRepository(store)

def get_session(request: Request) -> SessionContext:
    return request.app.state.session

def get_notifier(request: Request) -> RecordingNotifier:
    return request.app.state.notifier

def get_price_feed(request: Request) -> PriceFeed:
    return request.app.state.price_feed

def get_plans() -> Dict[str, Plan]:
    return PLANS_BY_ID

def get_accrual_mode(settings: Settings = Depends(get_settings)) -> AccrualMode:
    return AccrualMode(settings.ACCRUAL_MODE)

# используем любой PaymentProvider, пока что - заглушка
def get_payment_provider(settings: Settings = Depends(get_settings)) -> PaymentProvider:
    return StubPaymentProvider(delay_seconds=settings.PAYMENT_DELAY_SECONDS)

def get_current_user(session: SessionContext = Depends(get_session)) -> User:
    try:
        return session.require_user()
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

def ensure_session_tasks(request: Request, session: SessionContext) -> None:
    state = request.app.state
    settings: Settings = state.settings
    if not settings.SCHEDULER_ENABLED or session.user is None:
        return
    start_accrual(
        state.scheduler,
        state.database,
        session,
        PLANS_BY_ID,
        mode=AccrualMode(settings.ACCRUAL_MODE),
        ticks_per_day=settings.ACCRUAL_TICKS_PER_DAY,
        interval_seconds=settings.ACCRUAL_INTERVAL_SECONDS,
    )

import logging
from typing import Callable, Mapping

from cryptomine.core.entities.contract import AccrualMode
from cryptomine.core.entities.plan import Plan
from cryptomine.core.entities.session import SessionContext
from cryptomine.core.services.price_feed import PriceFeed
from cryptomine.core.services.task_scheduler import TaskHandle, TaskScheduler
from cryptomine.core.use_cases.mining_use_cases import accrue_tick, has_active_contracts
from cryptomine.infrastructure.db.sqlite import Database, SQLiteContractRepository


logger = logging.getLogger(__name__)


def make_accrual_job(
    database: Database,
    session: SessionContext,
    plans: Mapping[str, Plan],
    mode: AccrualMode,
    ticks_per_day: int,
) -> Callable[[], None]:
    def run() -> None:
        user = session.user
        if user is None:
            return
        with database.store() as store:
            repo = SQLiteContractRepository(store)
            # тик нужен, только пока есть хотя бы один активный контракт
            if not has_active_contracts(repo, user):
                return
            accrue_tick(repo, user, plans, mode=mode, ticks_per_day=ticks_per_day)
    return run


def start_price_walk(scheduler: TaskScheduler, feed: PriceFeed, interval_seconds: float) -> TaskHandle:
    return scheduler.schedule_interval(feed.step, interval_seconds, "price_walk")


def start_accrual(
    scheduler: TaskScheduler,
    database: Database,
    session: SessionContext,
    plans: Mapping[str, Plan],
    mode: AccrualMode,
    ticks_per_day: int,
    interval_seconds: float,
) -> TaskHandle:
    """Запускает тик начислений для сессии; задача остановится при sign_out"""
    running = [task for task in session.tasks if task.active]
    if running:
        return running[0]
    job = make_accrual_job(database, session, plans, mode, ticks_per_day)
    handle = scheduler.schedule_interval(job, interval_seconds, "accrual_tick")
    session.attach_task(handle)
    return handle

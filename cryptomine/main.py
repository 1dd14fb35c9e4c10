import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cryptomine.config.plans import PLANS_BY_ID
from cryptomine.config.settings import Settings, settings
from cryptomine.core.entities.contract import AccrualMode
from cryptomine.core.entities.session import SessionContext
from cryptomine.core.errors import AppError
from cryptomine.core.use_cases.account_use_cases import restore_session
from cryptomine.infrastructure.db.sqlite import Database, SQLiteUserRepository
from cryptomine.infrastructure.notifications.log_notifier import RecordingNotifier
from cryptomine.infrastructure.pricing.random_walk import RandomWalkPriceFeed
from cryptomine.infrastructure.scheduling.apscheduler_scheduler import APSchedulerTaskScheduler
from cryptomine.infrastructure.scheduling.jobs import start_accrual, start_price_walk
from cryptomine.infrastructure.web.controllers.account_controller import router as account_router
from cryptomine.infrastructure.web.controllers.mining_controller import router as mining_router
from cryptomine.infrastructure.web.controllers.notification_controller import router as notification_router
from cryptomine.infrastructure.web.dependencies import status_for


logger = logging.getLogger(__name__)

# от CORS
origins = [
    "http://localhost:8000",
    "http://localhost:5173",
]


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    # ошибки из зависимостей (например, хранилище недоступно) до роутов не доходят
    request.app.state.notifier.error(str(exc))
    return JSONResponse(status_code=status_for(exc), content={"detail": str(exc)})


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or settings
    logging.basicConfig(
        level=app_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = app.state
        state.database = Database(app_settings.DB_PATH)
        state.session = SessionContext()
        state.notifier = RecordingNotifier(history=app_settings.NOTIFICATION_HISTORY)
        state.price_feed = RandomWalkPriceFeed(
            start=app_settings.PRICE_WALK_START,
            max_step=app_settings.PRICE_WALK_MAX_STEP,
            seed=app_settings.PRICE_WALK_SEED,
        )
        state.scheduler = APSchedulerTaskScheduler()
        state.price_task = None

        with state.database.store() as store:
            restore_session(SQLiteUserRepository(store), state.session)

        if app_settings.SCHEDULER_ENABLED:
            state.scheduler.start()
            state.price_task = start_price_walk(
                state.scheduler, state.price_feed, app_settings.PRICE_WALK_INTERVAL_SECONDS,
            )
            if state.session.user is not None:
                start_accrual(
                    state.scheduler,
                    state.database,
                    state.session,
                    PLANS_BY_ID,
                    mode=AccrualMode(app_settings.ACCRUAL_MODE),
                    ticks_per_day=app_settings.ACCRUAL_TICKS_PER_DAY,
                    interval_seconds=app_settings.ACCRUAL_INTERVAL_SECONDS,
                )
        logger.info("CryptoMine started (accrual mode: %s)", app_settings.ACCRUAL_MODE)
        try:
            yield
        finally:
            state.session.stop_tasks()
            if state.price_task is not None:
                state.price_task.stop()
            state.scheduler.shutdown()
            state.database.close()

    app = FastAPI(title="CryptoMine", lifespan=lifespan)
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AppError, app_error_handler)

    app.include_router(account_router)
    app.include_router(mining_router)
    app.include_router(notification_router)
    return app


app = create_app()

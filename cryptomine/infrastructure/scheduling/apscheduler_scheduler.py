import logging
from threading import Lock
from typing import Callable, Optional
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from cryptomine.core.services.task_scheduler import TaskHandle, TaskScheduler


logger = logging.getLogger(__name__)


def _guarded(func: Callable[[], None], name: str) -> Callable[[], None]:
    def run() -> None:
        try:
            func()
        except Exception:
            logger.exception("Scheduled task %s failed", name)
    return run


class APSchedulerTaskHandle(TaskHandle):
    def __init__(self, scheduler: BackgroundScheduler, job_id: str, name: str):
        self._scheduler = scheduler
        self.job_id = job_id
        self.name = name
        self._active = True
        self._lock = Lock()

    @property
    def active(self) -> bool:
        return self._active

    def stop(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            logger.debug("Task %s was already removed", self.job_id)
        logger.info("Stopped task %s", self.name)


class APSchedulerTaskScheduler(TaskScheduler):
    """Одна периодическая задача на каждую заботу: блуждание цены, тик начислений"""
    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self.scheduler = scheduler or BackgroundScheduler()

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        if self.scheduler.running:
            return
        self.scheduler.start()
        logger.info("Background scheduler started")

    def schedule_interval(self, func: Callable[[], None], seconds: float, name: str) -> TaskHandle:
        job_id = f"{name}-{uuid4().hex[:8]}"
        self.scheduler.add_job(
            _guarded(func, name),
            "interval",
            seconds=seconds,
            id=job_id,
            name=name,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Scheduled task %s every %ss", job_id, seconds)
        return APSchedulerTaskHandle(self.scheduler, job_id, name)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Background scheduler stopped")

from datetime import datetime, timedelta, timezone

import pytest

from cryptomine.core.entities.contract import Contract
from cryptomine.core.entities.plan import Plan
from cryptomine.core.entities.session import SessionContext
from cryptomine.core.entities.user import User
from cryptomine.core.services.task_scheduler import TaskHandle, TaskScheduler
from cryptomine.infrastructure.db.sqlite import (
    SQLiteContractRepository,
    SQLiteKeyValueStore,
    SQLiteUserRepository,
    connect,
)


NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeHandle(TaskHandle):
    def __init__(self, name):
        self.name = name
        self.stopped = 0

    @property
    def active(self):
        return self.stopped == 0

    def stop(self):
        self.stopped += 1


class FakeScheduler(TaskScheduler):
    """Запоминает задачи вместо реального запуска"""
    def __init__(self):
        self.jobs = []

    def schedule_interval(self, func, seconds, name):
        handle = FakeHandle(name)
        self.jobs.append((func, seconds, handle))
        return handle

    def shutdown(self):
        for _, _, handle in self.jobs:
            handle.stop()


def make_contract(user_id: str, plan: Plan, start: datetime = NOW, **overrides) -> Contract:
    values = dict(
        id=f"mining_{plan.id}_{start.timestamp():.0f}",
        user_id=user_id,
        plan_id=plan.id,
        start_date=start.isoformat(),
        end_date=(start + timedelta(days=plan.duration)).isoformat(),
        total_earned=0.0,
        is_active=True,
    )
    values.update(overrides)
    return Contract(**values)


@pytest.fixture
def store():
    conn = connect(":memory:")
    yield SQLiteKeyValueStore(conn)
    conn.close()

@pytest.fixture
def user_repo(store):
    return SQLiteUserRepository(store)

@pytest.fixture
def contract_repo(store):
    return SQLiteContractRepository(store)

@pytest.fixture
def session():
    return SessionContext()

@pytest.fixture
def user():
    return User(
        id="user_test",
        username="satoshi",
        email="satoshi@mail.com",
        display_name="satoshi",
        created_at=NOW.isoformat(),
    )

@pytest.fixture
def fake_scheduler():
    return FakeScheduler()

"""Shared fixtures: a controllable clock and every launch history backend."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine

from cronhound.scheduler.persistence import JsonLaunchHistory
from cronhound.storage.db.engine import create_session_factory
from cronhound.storage.db.models import StorageBase
from cronhound.storage.db.repos.launch_sql_repo import SQLLaunchHistory
from cronhound.storage.memory import InMemoryLaunchHistory

# Monday
START = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, current: datetime = START):
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta) -> datetime:
        self.current += timedelta(**delta)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_sql_history(clock) -> SQLLaunchHistory:
    engine = create_engine("sqlite://")
    StorageBase.metadata.create_all(engine)
    return SQLLaunchHistory(create_session_factory(engine), clock=clock)


@pytest.fixture(params=["memory", "sql", "json"])
def history(request, clock, tmp_path):
    if request.param == "memory":
        return InMemoryLaunchHistory(clock=clock)
    if request.param == "sql":
        return make_sql_history(clock)
    return JsonLaunchHistory(tmp_path, clock=clock)

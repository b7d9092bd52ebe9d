"""Tests for the task registry."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from cronhound.config import SchedulerConfig
from cronhound.errors import ConfigurationError, ErrorKind
from cronhound.scheduler.dispatcher import Decision
from cronhound.scheduler.scheduler import Scheduler
from cronhound.scheduler.tasks import BunchTask, CallableTask, CommandTask, FileTask, JobTask
from cronhound.storage.memory import InMemoryLaunchHistory


class Job:
    def __init__(self, calls: list, label: str):
        self.calls = calls
        self.label = label

    def dispatch(self):
        self.calls.append(self.label)


@pytest.fixture
def scheduler(clock):
    return Scheduler(InMemoryLaunchHistory(clock=clock), SchedulerConfig(debug_logging=True))


class TestRegistration:
    def test_ids_follow_registration_order(self, scheduler):
        wrappers = [scheduler.task(f"echo {index}").schedule() for index in range(3)]
        assert [wrapper.task_id for wrapper in wrappers] == [0, 1, 2]
        assert scheduler.tasks == wrappers

    def test_task_kinds(self, scheduler, tmp_path):
        script = tmp_path / "job.py"
        script.write_text("print('hi')\n")
        assert isinstance(scheduler.task(Job([], "a")), JobTask)
        assert isinstance(scheduler.task([Job([], "a"), "echo hi"]), BunchTask)
        assert isinstance(scheduler.task(lambda: None), CallableTask)
        assert isinstance(scheduler.task(str(script)), FileTask)
        assert isinstance(scheduler.task("echo hi"), CommandTask)

    @pytest.mark.parametrize("source", [42, None, ""])
    def test_unknown_task_type(self, scheduler, source):
        with pytest.raises(ConfigurationError) as err:
            scheduler.task(source)
        assert err.value.kind is ErrorKind.UNKNOWN_TASK


class TestRun:
    def test_tasks_run_in_registration_order(self, scheduler, clock):
        calls: list = []
        for label in ("first", "second", "third"):
            scheduler.task(Job(calls, label)).schedule().every(5)
        decisions = scheduler.run(clock())
        assert calls == ["first", "second", "third"]
        assert decisions == {0: Decision.FIRST_LAUNCH, 1: Decision.FIRST_LAUNCH, 2: Decision.FIRST_LAUNCH}

    def test_broken_task_does_not_stop_siblings(self, scheduler, clock, caplog):
        calls: list = []
        scheduler.task(Job(calls, "unset")).schedule()  # no mode configured
        scheduler.task(Job(calls, "ok")).schedule().every(5)

        with caplog.at_level(logging.DEBUG, logger="cronhound"):
            decisions = scheduler.run(clock())

        assert decisions == {0: None, 1: Decision.FIRST_LAUNCH}
        assert calls == ["ok"]
        errors = [record.getMessage() for record in caplog.records if record.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "Can't be started" in errors[0]
        assert "Has no repeat mode configured" in errors[0]
        assert not scheduler.running

    def test_run_logs_start_and_duration(self, scheduler, clock, caplog):
        with caplog.at_level(logging.DEBUG, logger="cronhound"):
            scheduler.run(clock())
        messages = [record.getMessage() for record in caplog.records]
        assert messages[0] == "[Scheduler]: Launching the scheduler"
        assert messages[-1].startswith("[Scheduler]: Completed in ")

    def test_run_uses_scheduler_timezone(self, clock):
        scheduler = Scheduler(InMemoryLaunchHistory(clock=clock), timezone="US/Pacific")
        wrapper = scheduler.task(Job([], "a")).schedule()
        wrapper.add_interval("09:00", "12:00")
        # 10:00 UTC is 02:00 in Los Angeles
        assert scheduler.run(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)) == {0: Decision.NOT_IN_WINDOW}
        assert scheduler.run(datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc)) == {0: Decision.FIRST_LAUNCH}

    def test_set_timezone_updates_wrappers(self, scheduler):
        wrapper = scheduler.task(Job([], "a")).schedule()
        scheduler.set_timezone("Europe/Berlin")
        assert wrapper.timezone is scheduler.timezone
        assert scheduler.now().utcoffset() is not None

    def test_settings_for_every_task(self, scheduler):
        scheduler.task("echo a").schedule().every(5)
        scheduler.task("echo b").schedule().delay(10)
        settings = scheduler.get_tasks_settings()
        assert [item["name"] for item in settings] == ["echo a", "echo b"]
        assert [item["mode"] for item in settings] == ["EVERY", "DELAY"]


class TestExcepthook:
    def test_uncaught_error_is_logged_and_chained(self, clock, caplog):
        previous = MagicMock()
        with patch.object(sys, "excepthook", previous):
            scheduler = Scheduler(InMemoryLaunchHistory(clock=clock), SchedulerConfig(log_uncaught_errors=True))
            assert sys.excepthook == scheduler._excepthook
            error = ValueError("bad input")
            with caplog.at_level(logging.ERROR, logger="cronhound"):
                sys.excepthook(ValueError, error, None)
            scheduler.uninstall_excepthook()
            assert sys.excepthook is previous

        previous.assert_called_once_with(ValueError, error, None)
        assert "[Scheduler]: Uncaught error" in caplog.records[0].getMessage()

    def test_crash_during_run_mentions_locks(self, clock, caplog):
        previous = MagicMock()
        with patch.object(sys, "excepthook", previous):
            scheduler = Scheduler(InMemoryLaunchHistory(clock=clock), SchedulerConfig(log_uncaught_errors=True))
            scheduler.running = True
            with caplog.at_level(logging.ERROR, logger="cronhound"):
                sys.excepthook(MemoryError, MemoryError(), None)

        assert "ATTENTION" in caplog.records[0].getMessage()
        assert "Lock Reset Timeout" in caplog.records[0].getMessage()

    def test_hook_not_installed_by_default(self, scheduler):
        assert sys.excepthook != scheduler._excepthook

"""Per-task wrapper: schedule configuration, launch decisions and retries."""

from __future__ import annotations

import dataclasses
import time
import warnings
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Union

from cronhound.config import SchedulerConfig
from cronhound.errors import ConfigurationError, ErrorKind, ExecutionFailure
from cronhound.formatter import TRUNCATE_MARK, duration_string, format_exception, format_log_message
from cronhound.log import TaskLogger
from cronhound.storage.db.repos.launch_repo import LaunchHistoryRepository
from cronhound.timeutils import to_local, utcnow

from .constants import Mode
from .dispatcher import Decision, decide
from .matcher import in_window
from .options import TaskOptions
from .schedule import Schedule, ScheduleBuilder
from .tasks import AbstractTask

MAX_NAME_LENGTH = 128


class TaskWrapper:
    """Holds everything the scheduler knows about one registered task.

    The wrapper is configured once (schedule, runtime options, name) and then
    dispatched on every invocation of the scheduler.
    """

    def __init__(
        self,
        handler: LaunchHistoryRepository,
        config: SchedulerConfig,
        task: AbstractTask,
        task_id: int,
        timezone: Optional[tzinfo] = None,
    ):
        self.handler = handler
        self.config = config
        self.task = task
        self.task_id = task_id
        self.timezone = timezone
        self.log = TaskLogger(config)
        self._builder = ScheduleBuilder(config.minimum_interval_length)
        self._options = TaskOptions(
            prevent_overlapping=config.default_prevent_overlapping,
            lock_reset_timeout=config.default_lock_reset_timeout,
            tries=config.default_tries,
            try_delay=config.default_try_delay,
        )
        self._name = ""
        self._description = ""
        self.name(task.get_name())

    # ------------------------------------------------------------------
    # Schedule
    @property
    def schedule(self) -> Schedule:
        return self._builder.build()

    @property
    def options(self) -> TaskOptions:
        return self._options

    def every(self, minutes: int) -> None:
        """Launch every N minutes, counted from the start of the previous launch"""
        self._builder.set_period_every(minutes)

    def delay(self, minutes: int) -> None:
        """Launch N minutes after the end of the previous launch"""
        self._builder.set_period_delay(minutes)

    def add_interval(self, start: str, end: str) -> None:
        self._builder.add_time_window(start, end)

    def days_of_week(self, days: Iterable[Union[int, str]]) -> None:
        self._builder.restrict_to_days_of_week(days)

    def days_of_month(self, days: Iterable[int]) -> None:
        self._builder.restrict_to_days_of_month(days)

    def months(self, months: Iterable[Union[int, str]]) -> None:
        self._builder.restrict_to_months(months)

    def years(self, years: Iterable[int]) -> None:
        self._builder.restrict_to_years(years)

    # ------------------------------------------------------------------
    # Runtime options
    def prevent_overlapping(self, prevent: bool) -> None:
        self._options = dataclasses.replace(self._options, prevent_overlapping=bool(prevent))

    def lock_reset_timeout(self, minutes: int) -> None:
        self._options = dataclasses.replace(self._options, lock_reset_timeout=minutes)

    def tries(self, count: int) -> None:
        self._options = dataclasses.replace(self._options, tries=count)

    def try_delay(self, seconds: int) -> None:
        self._options = dataclasses.replace(self._options, try_delay=seconds)

    def name(self, name: str) -> None:
        """Rename the task. Names longer than 128 characters are truncated."""
        if not name:
            raise ConfigurationError("Task name can't be empty.", ErrorKind.EMPTY_NAME)
        if len(name) > MAX_NAME_LENGTH:
            name = name[: MAX_NAME_LENGTH - len(TRUNCATE_MARK)] + TRUNCATE_MARK
        self._name = name

    def description(self, text: str) -> None:
        self._description = text

    def get_name(self) -> str:
        return self._name

    def get_description(self) -> str:
        return self._description

    # ------------------------------------------------------------------
    # Dispatch
    def dispatch(self, now: Optional[datetime] = None) -> Decision:
        """Decide whether the task runs on this invocation and run it if so.

        Args:
            now: Evaluation instant. Defaults to the current time in the
                scheduler timezone.

        Returns:
            The decision that was taken.

        Raises:
            ConfigurationError: if no mode was configured for the task.
        """
        schedule = self.schedule
        if schedule.mode == Mode.UNSET:
            raise ConfigurationError(
                "Has no repeat mode configured. Do this with the 'every', 'delay' and/or any intervals methods",
                ErrorKind.MODE_NOT_SET,
            )

        started = time.monotonic()
        now = to_local(now or utcnow(), self.timezone)
        self.log_debug("Checking if it's time to start")

        if not in_window(schedule, now):
            self.log_debug("It's not time yet. Wait for an appropriate time interval")
            return Decision.NOT_IN_WINDOW

        last_launch = self.handler.get_last_launch(
            self.task_id, self.task.get_type(), self._name, self._description
        )
        verdict = decide(now, schedule, self._options, last_launch)
        if verdict.decision == Decision.STALE_LOCK:
            self.log_warning(verdict.message)
        else:
            self.log_debug(verdict.message)

        if verdict.decision.resets_lock and last_launch is not None:
            self.handler.reset_lock(last_launch.id)
        if verdict.decision.launches:
            self._launch(started)
        return verdict.decision

    def _launch(self, started: float) -> None:
        """Run the task until it succeeds or the tries are used up, on one launch id"""
        tries = self._options.tries
        launch_id: Optional[int] = None
        attempt = 1
        while True:
            if launch_id is None:
                self.log_debug(f"Launched (try {attempt}/{tries})")
                launch_id = self.handler.start_new_launch(self.task_id)
            else:
                self.log_debug(f"Restarted (try {attempt}/{tries})")
                launch_id = self.handler.restart_existing_launch(launch_id)

            failure = self._run_attempt(attempt)
            elapsed = duration_string(time.monotonic() - started)
            if failure is None:
                self.handler.complete_launch_successfully(launch_id)
                self.log_debug(f"Completed in {elapsed}")
                return

            text = format_exception(
                self.config.log_exception_format,
                self.config.max_exception_msg_length,
                f"Failed (try {failure.attempt}/{tries}) in {elapsed}",
                failure.exception,
            )
            errors = self.handler.complete_launch_unsuccessfully(launch_id, text)
            if errors >= tries or attempt >= tries:
                self.log_error(f"Failed in {elapsed}", failure.exception)
                return

            self.log_debug(text)
            time.sleep(self._options.try_delay)
            attempt += 1

    def _run_attempt(self, attempt: int) -> Optional[ExecutionFailure]:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                self.task.dispatch()
            except Exception as exc:
                failure: Optional[ExecutionFailure] = ExecutionFailure(exc, attempt)
            else:
                failure = None
        for item in caught:
            message = f"{item.category.__name__} - {item.message} (file {item.filename}, line {item.lineno})"
            if self.config.log_warnings_to_error:
                self.log_error(message)
            else:
                self.log_debug(message)
        return failure

    # ------------------------------------------------------------------
    # Introspection
    def get_settings(self) -> Dict[str, Any]:
        schedule = self.schedule
        return {
            "task_id": self.task_id,
            "name": self._name,
            "description": self._description,
            "mode": schedule.mode.name,
            "mode_description": _mode_description(schedule),
            **self._options.to_dict(),
            "intervals": schedule.to_dict(),
        }

    # ------------------------------------------------------------------
    # Logging
    def _format(self, message: str) -> str:
        return format_log_message(
            self.config.log_message_format,
            self.config.max_log_msg_length,
            self.task_id,
            self.task.get_type(),
            self._name,
            message,
            self._description,
        )

    def log_debug(self, message: str) -> None:
        self.log.debug(self._format(message), self.task_id)

    def log_warning(self, message: str) -> None:
        self.log.warning(self._format(message), self.task_id)

    def log_error(self, message: str, exc: Optional[BaseException] = None) -> None:
        if exc is not None:
            message = format_exception(
                self.config.log_exception_format, self.config.max_exception_msg_length, message, exc
            )
        self.log.error(self._format(message), self.task_id)


def _mode_description(schedule: Schedule) -> str:
    minutes = schedule.period_minutes
    labels: List[str] = [
        "UNSET - mode not set, task cannot be launched",
        "SINGLE - launch once per interval",
        f"EVERY - launches every {minutes} min",
        f"DELAY - launches {minutes} min after the end of the previous launch",
    ]
    return labels[schedule.mode]

"""Task registry run once per external invocation (cron, systemd timer...)."""

from __future__ import annotations

import sys
import time
import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional

from cronhound.config import SchedulerConfig
from cronhound.formatter import duration_string
from cronhound.log import TaskLogger
from cronhound.storage.db.repos.launch_repo import LaunchHistoryRepository
from cronhound.timeutils import get_timezone, to_local, utcnow

from .dispatcher import Decision
from .tasks import AbstractTask, make_task
from .wrapper import TaskWrapper


class Scheduler:
    """Owns the registered tasks and dispatches them in registration order.

    Example::

        scheduler = Scheduler(InMemoryLaunchHistory())
        wrapper = scheduler.task("python manage.py clearsessions").schedule()
        wrapper.every(10)
        scheduler.run()
    """

    def __init__(
        self,
        handler: LaunchHistoryRepository,
        config: Optional[SchedulerConfig] = None,
        timezone: str = "UTC",
    ):
        self.handler = handler
        self.config = config or SchedulerConfig()
        self.timezone = get_timezone(timezone)
        self.log = TaskLogger(self.config)
        self.tasks: List[TaskWrapper] = []
        self.running = False
        self._previous_excepthook = None
        if self.config.log_uncaught_errors:
            self.install_excepthook()

    def set_timezone(self, name: str) -> None:
        """Switch the evaluation timezone for this scheduler and its tasks"""
        self.timezone = get_timezone(name)
        for wrapper in self.tasks:
            wrapper.timezone = self.timezone

    def now(self) -> datetime:
        return to_local(utcnow(), self.timezone)

    def task(self, source: Any) -> AbstractTask:
        """Wrap a job object, list, callable, ``.py`` path or shell command"""
        return make_task(self, source)

    def schedule(self, task: AbstractTask) -> TaskWrapper:
        wrapper = TaskWrapper(self.handler, self.config, task, len(self.tasks), self.timezone)
        self.tasks.append(wrapper)
        return wrapper

    def run(self, now: Optional[datetime] = None) -> Dict[int, Optional[Decision]]:
        """Dispatch every task once.

        A task that can't be started is logged and skipped; the remaining
        tasks still run. Returns the decision per task id (None on error).
        """
        self.running = True
        started = time.monotonic()
        now = to_local(now, self.timezone) if now is not None else self.now()
        decisions: Dict[int, Optional[Decision]] = {}
        self.log.debug("[Scheduler]: Launching the scheduler")
        for wrapper in self.tasks:
            try:
                decisions[wrapper.task_id] = wrapper.dispatch(now)
            except Exception as exc:
                decisions[wrapper.task_id] = None
                wrapper.log_error("Can't be started", exc)
        # Stays True if a BaseException escapes the loop above.
        self.running = False
        self.log.debug(f"[Scheduler]: Completed in {duration_string(time.monotonic() - started)}")
        return decisions

    def get_tasks_settings(self) -> List[Dict[str, Any]]:
        return [wrapper.get_settings() for wrapper in self.tasks]

    # ------------------------------------------------------------------
    # Uncaught errors
    def install_excepthook(self) -> None:
        """Report process crashes on the error channel. Best effort only."""
        if self._previous_excepthook is not None:
            return
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._excepthook

    def uninstall_excepthook(self) -> None:
        if self._previous_excepthook is not None:
            sys.excepthook = self._previous_excepthook
            self._previous_excepthook = None

    def _excepthook(self, exc_type, exc, tb) -> None:
        details = "".join(traceback.format_exception(exc_type, exc, tb)).rstrip()
        if self.running:
            message = (
                f"[Scheduler]: ATTENTION: Scheduler crashed due to {exc_type.__name__}.\n"
                "Check the lock status of the task - in this situation, the Scheduler cannot release it "
                "automatically before Lock Reset Timeout has expired.\n"
                f"{details}"
            )
        else:
            message = f"[Scheduler]: Uncaught error\n{details}"
        self.log.error(message)
        previous = self._previous_excepthook or sys.__excepthook__
        previous(exc_type, exc, tb)

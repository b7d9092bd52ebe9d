"""Task adapters: the different kinds of work a scheduler can launch.

Each adapter exposes ``dispatch()`` (run the body, raise on failure),
``get_name()``, ``get_type()`` and ``schedule()``. The type tag is part of
the task identity stored by the launch history backends.
"""

from __future__ import annotations

import inspect
import re
import runpy
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from cronhound.errors import ConfigurationError, ErrorKind, TaskFailedError

if TYPE_CHECKING:  # pragma: no cover
    from .scheduler import Scheduler
    from .wrapper import TaskWrapper


class AbstractTask:
    TYPE = ""

    def __init__(self, scheduler: "Scheduler", name: str):
        if not self.TYPE:
            raise ConfigurationError(f"Task type for {type(self).__qualname__} not specified.", ErrorKind.UNKNOWN_TASK)
        self.scheduler = scheduler
        self._name = name

    def dispatch(self) -> None:
        raise NotImplementedError

    def get_name(self) -> str:
        return self._name

    def get_type(self) -> str:
        return self.TYPE

    def schedule(self) -> "TaskWrapper":
        """Register the task with its scheduler and return the wrapper to configure"""
        return self.scheduler.schedule(self)


class CommandTask(AbstractTask):
    """Shell command, stderr merged into stdout"""

    TYPE = "command"

    def __init__(self, scheduler: "Scheduler", command: str):
        super().__init__(scheduler, command)
        self.command = command

    def dispatch(self) -> None:
        echo = self.scheduler.config.command_output
        proc = subprocess.run(
            self.command,
            shell=True,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
        output = proc.stdout or ""
        if echo and output:
            sys.stdout.write(output)
            sys.stdout.flush()
        if proc.returncode != 0:
            lines = [line for line in output.splitlines() if line.strip()]
            raise TaskFailedError(lines[-1] if lines else f"exit status {proc.returncode}", proc.returncode)


class CallableTask(AbstractTask):
    TYPE = "callable"

    def __init__(self, scheduler: "Scheduler", func: Callable[[], Any]):
        super().__init__(scheduler, callable_name(func))
        self.func = func

    def dispatch(self) -> None:
        self.func()


class FileTask(AbstractTask):
    """Python file executed as ``__main__`` with runpy"""

    TYPE = "file"

    def __init__(self, scheduler: "Scheduler", path: str):
        resolved = self.validate_path(path)
        if resolved is None:
            raise ConfigurationError(f"{path} is not path to Python file", ErrorKind.UNKNOWN_TASK)
        super().__init__(scheduler, resolved)
        self.path = resolved

    def dispatch(self) -> None:
        try:
            runpy.run_path(self.path, run_name="__main__")
        except SystemExit as exc:
            if exc.code not in (None, 0):
                code = exc.code if isinstance(exc.code, int) else 1
                raise TaskFailedError(f"{self.path} exited with status {exc.code}", code) from exc

    @staticmethod
    def validate_path(path: str) -> Optional[str]:
        """Absolute path of an existing ``.py`` file, or None"""
        try:
            candidate = Path(path).expanduser()
            if candidate.suffix == ".py" and candidate.is_file():
                return str(candidate.resolve())
        except (OSError, ValueError):
            return None
        return None


class JobTask(AbstractTask):
    """Any object with a ``dispatch()`` method"""

    TYPE = "job"

    def __init__(self, scheduler: "Scheduler", job: Any):
        super().__init__(scheduler, f"{type(job).__module__}.{type(job).__qualname__}")
        self.job = job

    def dispatch(self) -> None:
        self.job.dispatch()


class BunchTask(AbstractTask):
    """Several tasks run one after another as a single launch"""

    TYPE = "bunch"

    def __init__(self, scheduler: "Scheduler", tasks: List[Any]):
        bunch = [item if isinstance(item, AbstractTask) else make_task(scheduler, item) for item in tasks]
        name = "; ".join(f"{index}::{task.get_type()}::{task.get_name()}" for index, task in enumerate(bunch))
        super().__init__(scheduler, name)
        self.tasks = bunch

    def dispatch(self) -> None:
        for task in self.tasks:
            task.dispatch()


def is_job(value: Any) -> bool:
    return not isinstance(value, (type, AbstractTask)) and callable(getattr(value, "dispatch", None))


def callable_name(func: Callable[..., Any]) -> str:
    """Dotted name, or the collapsed source text for lambdas"""
    qualname = getattr(func, "__qualname__", None) or type(func).__qualname__
    module = getattr(func, "__module__", None) or ""
    dotted = f"{module}.{qualname}" if module else qualname
    if getattr(func, "__name__", "") != "<lambda>":
        return dotted
    try:
        source = inspect.getsource(func)
    except (OSError, TypeError):
        return dotted
    return re.sub(r"\s+", " ", source).strip()


def make_task(scheduler: "Scheduler", source: Any) -> AbstractTask:
    """Pick the adapter for ``source``: job, list, callable, .py path, then shell command."""
    if isinstance(source, AbstractTask):
        return source
    if is_job(source):
        return JobTask(scheduler, source)
    if isinstance(source, (list, tuple)):
        return BunchTask(scheduler, list(source))
    if callable(source):
        return CallableTask(scheduler, source)
    if isinstance(source, str):
        if not source.strip():
            raise ConfigurationError("Task command can't be empty.", ErrorKind.UNKNOWN_TASK)
        if FileTask.validate_path(source) is not None:
            return FileTask(scheduler, source)
        return CommandTask(scheduler, source)
    raise ConfigurationError(f"Unknown task type: {type(source).__qualname__}", ErrorKind.UNKNOWN_TASK)

"""Error types raised and passed around by the dispatch engine."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    """Category of a configuration problem."""

    INVALID_TIME = "invalid_time"
    OVERLAPPING_WINDOW = "overlapping_window"
    WINDOW_TOO_SHORT = "window_too_short"
    INVALID_RANGE = "invalid_range"
    INVALID_VALUE = "invalid_value"
    MODE_CONFLICT = "mode_conflict"
    MODE_NOT_SET = "mode_not_set"
    EMPTY_NAME = "empty_name"
    UNKNOWN_TASK = "unknown_task"


class ConfigurationError(ValueError):
    """Invalid schedule, task or runtime configuration. Never retried."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.INVALID_VALUE):
        super().__init__(message)
        self.kind = kind


class TaskFailedError(RuntimeError):
    """A task body finished with a non-zero status."""

    def __init__(self, message: str, code: int = 1):
        super().__init__(message)
        self.code = code


@dataclass(slots=True)
class ExecutionFailure:
    """One failed attempt inside a launch lineage."""

    exception: BaseException
    attempt: int


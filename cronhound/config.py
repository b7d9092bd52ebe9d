"""Process-wide scheduler configuration."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields

from .errors import ConfigurationError, ErrorKind

DEFAULT_LOG_MESSAGE_FORMAT = "[{{task_id}}. {{TASK_TYPE}} '{{task_name}}']: {{message}}"
DEFAULT_LOG_EXCEPTION_FORMAT = (
    "{{header}}\n[code]: {{code}}\n[class]: {{class}}\n[message]: {{message}}\n[stacktrace]:\n{{stacktrace}}"
)

ENV_PREFIX = "CRONHOUND_"


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.", ErrorKind.INVALID_VALUE) from None


@dataclass
class SchedulerConfig:
    """Defaults applied to every task unless overridden on its wrapper.

    Lock reset timeout and minimum window length are minutes; try delay is
    the sleep in seconds between two attempts. Message lengths of ``None``
    disable truncation.
    """

    debug_logging: bool = False
    error_logging: bool = True
    logger: logging.Logger | None = None
    debug_log_level: int = logging.DEBUG
    error_log_level: int = logging.ERROR
    log_uncaught_errors: bool = False
    log_warnings_to_error: bool = False
    log_message_format: str = DEFAULT_LOG_MESSAGE_FORMAT
    log_exception_format: str = DEFAULT_LOG_EXCEPTION_FORMAT
    max_log_msg_length: int | None = None
    max_exception_msg_length: int | None = None
    command_output: bool = False
    default_prevent_overlapping: bool = False
    default_lock_reset_timeout: int = 360
    default_tries: int = 1
    default_try_delay: int = 0
    minimum_interval_length: int = 30
    audit_log: bool = False

    def __post_init__(self) -> None:
        if self.default_lock_reset_timeout < 0:
            raise ConfigurationError(
                "The number of minutes in the locking reset timeout must be greater than or equal to zero.",
                ErrorKind.INVALID_RANGE,
            )
        if self.default_tries <= 0:
            raise ConfigurationError("The number of attempts must be greater than zero.", ErrorKind.INVALID_RANGE)
        if self.default_try_delay < 0:
            raise ConfigurationError(
                "The delay before new try must be greater than or equal to zero.", ErrorKind.INVALID_RANGE
            )
        if self.minimum_interval_length <= 0:
            raise ConfigurationError("The minimum interval must be greater than zero.", ErrorKind.INVALID_RANGE)
        for name in ("max_log_msg_length", "max_exception_msg_length"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be greater than zero.", ErrorKind.INVALID_RANGE)

    @classmethod
    def from_env(cls, **overrides) -> "SchedulerConfig":
        """Build a config from ``CRONHOUND_<FIELD>`` variables; keyword overrides win."""

        values: dict = {}
        for item in fields(cls):
            if item.name == "logger":
                continue
            env_name = ENV_PREFIX + item.name.upper()
            if os.getenv(env_name) is None:
                continue
            if item.type in ("bool", bool):
                values[item.name] = env_flag(env_name)
            elif item.name.endswith("_level"):
                level = os.environ[env_name].strip().upper()
                values[item.name] = int(level) if level.isdigit() else logging.getLevelName(level)
                if not isinstance(values[item.name], int):
                    raise ConfigurationError(f"{env_name} is not a log level: {level!r}.", ErrorKind.INVALID_VALUE)
            elif item.name.endswith("_format"):
                values[item.name] = os.environ[env_name].replace("\\n", "\n")
            else:
                number = _env_int(env_name)
                if number is not None:
                    values[item.name] = number
        values.update(overrides)
        return cls(**values)

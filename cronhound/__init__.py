"""cronhound: launch windows and lock-aware dispatch for cron-invoked tasks."""

from .config import SchedulerConfig
from .errors import ConfigurationError, ErrorKind, TaskFailedError
from .scheduler import Scheduler, TaskWrapper
from .storage import InMemoryLaunchHistory, get_launch_history_from_env

__version__ = "0.1.0"

__all__ = [
    "Scheduler",
    "TaskWrapper",
    "SchedulerConfig",
    "ConfigurationError",
    "ErrorKind",
    "TaskFailedError",
    "InMemoryLaunchHistory",
    "get_launch_history_from_env",
]

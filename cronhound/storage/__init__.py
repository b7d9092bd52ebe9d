"""Launch history backends (SQL, JSON file, in-memory)."""

from .bootstrap import get_launch_history_from_env
from .db.models import LaunchRecord
from .db.repos.launch_repo import LaunchHistoryRepository
from .memory import InMemoryLaunchHistory

__all__ = [
    "LaunchHistoryRepository",
    "LaunchRecord",
    "InMemoryLaunchHistory",
    "get_launch_history_from_env",
]

"""Launch history repository interface."""
from __future__ import annotations

from typing import Protocol

from ..models import LaunchRecord


class LaunchHistoryRepository(Protocol):
    """Persistence boundary consumed by the dispatch engine.

    ``id`` arguments are launch ids for full-history backends and task ids
    for backends that only keep the last launch of each task.
    """

    def get_last_launch(
        self, task_id: int, task_type: str, task_name: str, task_description: str
    ) -> LaunchRecord | None:
        """Last launch, or None if the task never ran or its type/name/description changed."""
        ...

    def start_new_launch(self, task_id: int) -> int:
        ...

    def restart_existing_launch(self, id: int) -> int:
        ...

    def complete_launch_successfully(self, id: int) -> None:
        ...

    def complete_launch_unsuccessfully(self, id: int, error_text: str) -> int:
        """Mark the launch failed and return the lineage's error count."""
        ...

    def reset_lock(self, id: int) -> None:
        ...

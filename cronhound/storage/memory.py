"""In-memory launch history with full per-task history."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from itertools import count
from typing import Callable, Iterable

from cronhound.timeutils import utcnow

from .db.models import RESET_LOCK_MESSAGE, LaunchRecord
from .db.repos.launch_repo import LaunchHistoryRepository


@dataclass(slots=True)
class _TaskIdentity:
    type: str
    name: str
    description: str
    last_activity: datetime


class InMemoryLaunchHistory(LaunchHistoryRepository):
    """Keeps tasks and launches in dictionaries for the lifetime of the process."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._tasks: dict[int, _TaskIdentity] = {}
        self._launches: dict[int, LaunchRecord] = {}
        self._ids = count(1)

    def get_last_launch(
        self, task_id: int, task_type: str, task_name: str, task_description: str
    ) -> LaunchRecord | None:
        now = self._clock()
        identity = self._tasks.get(task_id)
        self._tasks[task_id] = _TaskIdentity(task_type, task_name, task_description, now)
        if identity is None or (identity.type, identity.name, identity.description) != (
            task_type,
            task_name,
            task_description,
        ):
            return None

        launches = self.list_launches(task_id=task_id, limit=1)
        return launches[0] if launches else None

    def start_new_launch(self, task_id: int) -> int:
        launch_id = next(self._ids)
        self._launches[launch_id] = LaunchRecord(
            id=launch_id,
            task_id=task_id,
            start_time=self._clock(),
            end_time=None,
            is_working=True,
            error_count=0,
            error_text=None,
        )
        return launch_id

    def restart_existing_launch(self, id: int) -> int:
        self._update(id, start_time=self._clock(), end_time=None, is_working=True)
        return id

    def complete_launch_successfully(self, id: int) -> None:
        self._update(id, end_time=self._clock(), is_working=False, error_count=0, error_text=None)

    def complete_launch_unsuccessfully(self, id: int, error_text: str) -> int:
        errors = self._get(id).error_count + 1
        self._update(id, end_time=self._clock(), is_working=False, error_count=errors, error_text=error_text)
        return errors

    def reset_lock(self, id: int) -> None:
        errors = self._get(id).error_count + 1
        self._update(
            id, end_time=self._clock(), is_working=False, error_count=errors, error_text=RESET_LOCK_MESSAGE
        )

    def list_launches(self, *, task_id: int | None = None, limit: int = 100) -> list[LaunchRecord]:
        records: Iterable[LaunchRecord] = self._launches.values()
        if task_id is not None:
            records = [record for record in records if record.task_id == task_id]
        ordered = sorted(records, key=lambda record: (record.start_time, record.id), reverse=True)
        return ordered[:limit]

    def _get(self, launch_id: int) -> LaunchRecord:
        try:
            return self._launches[launch_id]
        except KeyError:
            raise KeyError(f"Launch {launch_id} not found") from None

    def _update(self, launch_id: int, **changes) -> None:
        self._launches[launch_id] = replace(self._get(launch_id), **changes)

"""JSON file launch history that keeps only the last launch of each task."""

from __future__ import annotations

import json
import os
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

# fcntl is Unix-only, handle Windows separately
try:  # pragma: no cover - optional import guard
    import fcntl

    HAS_FCNTL = True
except ImportError:  # pragma: no cover - fallback on Windows
    HAS_FCNTL = False

from cronhound.storage.db.models import RESET_LOCK_MESSAGE, LaunchRecord
from cronhound.storage.db.repos.launch_repo import LaunchHistoryRepository
from cronhound.timeutils import utcnow


class JsonLaunchHistory(LaunchHistoryRepository):
    """Stores one launch slot per task in ``launches.json``.

    The launch id is the task id. Terminal outcomes are appended to
    ``launch_history.jsonl`` for later inspection.
    """

    def __init__(self, data_dir: Path, clock: Callable[[], datetime] = utcnow):
        self.data_dir = Path(data_dir)
        self.scheduler_dir = self.data_dir / "scheduler"
        self.launches_file = self.scheduler_dir / "launches.json"
        self.history_file = self.scheduler_dir / "launch_history.jsonl"
        self.lock_file = self.scheduler_dir / ".launches.lock"
        self.scheduler_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    # ------------------------------------------------------------------
    # File locking helpers
    @contextmanager
    def _file_lock(self, timeout: int = 10):
        """Context manager for file locking."""

        lock_fd = None
        try:
            if not HAS_FCNTL or os.name == "nt":
                start_time = time.time()
                while self.lock_file.exists():
                    if time.time() - start_time > timeout:
                        raise TimeoutError("Failed to acquire launch history lock")
                    time.sleep(0.1)
                self.lock_file.touch()
                yield
            else:  # pragma: no cover - Unix-only branch
                lock_fd = open(self.lock_file, "w")
                fcntl.flock(lock_fd, fcntl.LOCK_EX)
                yield
        finally:
            if not HAS_FCNTL or os.name == "nt":
                if self.lock_file.exists():
                    try:
                        self.lock_file.unlink()
                    except OSError:
                        pass
            elif lock_fd:
                fcntl.flock(lock_fd, fcntl.LOCK_UN)
                lock_fd.close()

    @contextmanager
    def _state(self):
        """Locked read-modify-write of the whole launches file."""

        with self._file_lock():
            state = self._read_state()
            yield state
            tmp_path = self.launches_file.with_suffix(".json.tmp")
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(state, handle, indent=2)
            os.replace(tmp_path, self.launches_file)

    def _read_state(self) -> Dict[str, Any]:
        if not self.launches_file.exists():
            return {}
        with open(self.launches_file, "r", encoding="utf-8") as handle:
            return json.load(handle)

    # ------------------------------------------------------------------
    # Public API - launch history port
    def get_last_launch(
        self, task_id: int, task_type: str, task_name: str, task_description: str
    ) -> Optional[LaunchRecord]:
        now = self._clock()
        identity = {"type": task_type, "name": task_name, "description": task_description}
        with self._state() as state:
            entry = state.get(str(task_id))
            if entry is None or {key: entry.get(key) for key in identity} != identity:
                # New or changed task: forget the old lock together with the old identity.
                state[str(task_id)] = {**identity, "last_activity": now.isoformat(), "launch": None}
                return None
            entry["last_activity"] = now.isoformat()
            launch = entry.get("launch")
            return LaunchRecord.from_dict(launch) if launch else None

    def start_new_launch(self, task_id: int) -> int:
        record = LaunchRecord(
            id=task_id,
            task_id=task_id,
            start_time=self._clock(),
            end_time=None,
            is_working=True,
            error_count=0,
            error_text=None,
        )
        with self._state() as state:
            entry = state.setdefault(str(task_id), {"type": "", "name": "", "description": ""})
            entry["launch"] = record.to_dict()
        return task_id

    def restart_existing_launch(self, id: int) -> int:
        self._update(id, start_time=self._clock().isoformat(), end_time=None, is_working=True)
        return id

    def complete_launch_successfully(self, id: int) -> None:
        launch = self._update(
            id, end_time=self._clock().isoformat(), is_working=False, error_count=0, error_text=None
        )
        self._append_history_file(launch, success=True)

    def complete_launch_unsuccessfully(self, id: int, error_text: str) -> int:
        with self._state() as state:
            launch = self._launch_entry(state, id)
            launch.update(
                end_time=self._clock().isoformat(),
                is_working=False,
                error_count=int(launch.get("error_count", 0)) + 1,
                error_text=error_text,
            )
            errors = launch["error_count"]
        self._append_history_file(launch, success=False)
        return errors

    def reset_lock(self, id: int) -> None:
        with self._state() as state:
            launch = self._launch_entry(state, id)
            launch.update(
                end_time=self._clock().isoformat(),
                is_working=False,
                error_count=int(launch.get("error_count", 0)) + 1,
                error_text=RESET_LOCK_MESSAGE,
            )
        self._append_history_file(launch, success=False)

    # ------------------------------------------------------------------
    # Launch history file
    def get_launch_history(self, task_id: Optional[int] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recent terminal outcomes, oldest first."""

        if not self.history_file.exists():
            return []
        with self._file_lock():
            with open(self.history_file, "r", encoding="utf-8") as handle:
                lines = handle.readlines()
        history: List[Dict[str, Any]] = []
        for line in lines:
            try:
                entry = json.loads(line.strip())
            except json.JSONDecodeError:
                continue
            if task_id is None or entry.get("task_id") == task_id:
                history.append(entry)
        return history[-limit:]

    # ------------------------------------------------------------------
    # Internal helpers
    @staticmethod
    def _launch_entry(state: Dict[str, Any], launch_id: int) -> Dict[str, Any]:
        launch = (state.get(str(launch_id)) or {}).get("launch")
        if launch is None:
            raise KeyError(f"Launch {launch_id} not found")
        return launch

    def _update(self, launch_id: int, **changes: Any) -> Dict[str, Any]:
        with self._state() as state:
            launch = self._launch_entry(state, launch_id)
            launch.update(changes)
        return launch

    def _append_history_file(self, launch: Dict[str, Any], *, success: bool) -> None:
        entry = {**launch, "success": success, "timestamp": self._clock().isoformat()}
        with self._file_lock():
            with open(self.history_file, "a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry) + "\n")

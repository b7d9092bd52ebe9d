"""Tests for the JSON file launch history."""

from __future__ import annotations

import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cronhound.scheduler.persistence import JsonLaunchHistory
from cronhound.storage.db.models import RESET_LOCK_MESSAGE


class JsonLaunchHistoryTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.data_dir = Path(self._tmp.name)
        self.now = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        self.history = JsonLaunchHistory(self.data_dir, clock=lambda: self.now)

    def _register(self, task_id: int = 3, name: str = "backup.py"):
        return self.history.get_last_launch(task_id, "file", name, "nightly backup")

    def test_launch_id_is_task_id(self):
        self._register()
        self.assertEqual(self.history.start_new_launch(3), 3)

    def test_state_file_layout(self):
        self._register()
        self.history.start_new_launch(3)
        with open(self.data_dir / "scheduler" / "launches.json", "r", encoding="utf-8") as handle:
            state = json.load(handle)
        entry = state["3"]
        self.assertEqual(entry["type"], "file")
        self.assertEqual(entry["name"], "backup.py")
        self.assertEqual(entry["description"], "nightly backup")
        self.assertTrue(entry["launch"]["is_working"])
        self.assertEqual(entry["launch"]["start_time"], self.now.isoformat())

    def test_identity_change_clears_the_slot(self):
        self._register()
        self.history.start_new_launch(3)
        self.assertIsNone(self._register(name="restore.py"))
        # The old lock is gone for good, not only hidden for one call.
        self.assertIsNone(self._register(name="restore.py"))

    def test_history_file_records_terminal_outcomes(self):
        self._register()
        launch_id = self.history.start_new_launch(3)
        self.history.complete_launch_unsuccessfully(launch_id, "disk full")
        self.now += timedelta(minutes=5)
        self.history.restart_existing_launch(launch_id)
        self.history.complete_launch_successfully(launch_id)
        self.history.start_new_launch(3)
        self.history.reset_lock(3)

        history = self.history.get_launch_history(task_id=3)
        self.assertEqual([entry["success"] for entry in history], [False, True, False])
        self.assertEqual(history[0]["error_text"], "disk full")
        self.assertEqual(history[2]["error_text"], RESET_LOCK_MESSAGE)
        self.assertEqual(self.history.get_launch_history(task_id=4), [])
        self.assertEqual(len(self.history.get_launch_history(limit=1)), 1)

    def test_history_skips_corrupt_lines(self):
        self._register()
        self.history.start_new_launch(3)
        self.history.complete_launch_successfully(3)
        with open(self.history.history_file, "a", encoding="utf-8") as handle:
            handle.write("{not json\n")
        self.assertEqual(len(self.history.get_launch_history()), 1)

    def test_state_survives_new_instance(self):
        self._register()
        self.history.start_new_launch(3)
        reopened = JsonLaunchHistory(self.data_dir, clock=lambda: self.now)
        last = reopened.get_last_launch(3, "file", "backup.py", "nightly backup")
        self.assertIsNotNone(last)
        self.assertTrue(last.is_working)

    def test_no_history_file_yet(self):
        self.assertEqual(self.history.get_launch_history(), [])


if __name__ == "__main__":
    unittest.main()

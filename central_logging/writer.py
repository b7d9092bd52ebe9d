import json
from copy import copy
from datetime import datetime, UTC
from pathlib import Path
from typing import Dict, Any

from .config import DISPATCH_LOG_FILE, scheduler_dir


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _write_jsonl(path: Path, record: Dict[str, Any]) -> None:
    record["ts"] = datetime.now(UTC).isoformat()
    _ensure_parent(path)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, default=str) + "\n")


def write_scheduler(record: Dict[str, Any]) -> None:
    rec = copy(record)
    log_file = rec.pop("file", DISPATCH_LOG_FILE)
    path = scheduler_dir() / log_file
    _write_jsonl(path, rec)


def get_log_path(log_file: str = DISPATCH_LOG_FILE) -> Path:
    return scheduler_dir() / log_file

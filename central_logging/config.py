import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOG_ROOT = Path(os.getenv("CRONHOUND_LOG_DIR") or PROJECT_ROOT / "logging")

SCHEDULER = "scheduler"
DISPATCH_LOG_FILE = "dispatch.jsonl"


def get_log_dir(process: str) -> Path:
    base = LOG_ROOT / process
    base.mkdir(parents=True, exist_ok=True)
    return base


def scheduler_dir() -> Path:
    return get_log_dir(SCHEDULER)

"""``.env`` loading for non-exported shell environments (cron jobs in particular)."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values


def load_env(root: Path | None = None) -> int:
    """Load KEY=VALUE pairs from ``<root>/.env`` into os.environ if missing.

    Returns number of keys injected.
    """
    base = root or Path.cwd()
    env_path = base / ".env"
    if not env_path.exists():
        return 0

    injected = 0
    for key, value in dotenv_values(env_path).items():
        if key and value is not None and key not in os.environ:
            os.environ[key] = value
            injected += 1
    return injected

"""Factory helpers for picking the launch history backend."""
from __future__ import annotations

import os
from pathlib import Path

from cronhound.config import env_flag

from .db.engine import DatabaseConfig, create_session_factory, create_sqlalchemy_engine
from .db.models import StorageBase
from .db.repos.launch_repo import LaunchHistoryRepository
from .db.repos.launch_sql_repo import SQLLaunchHistory


def get_launch_history_from_env() -> LaunchHistoryRepository:
    """SQL backend if ``CRONHOUND_STORAGE_URL``/``DATABASE_URL`` is set, JSON file otherwise."""

    url = os.getenv("CRONHOUND_STORAGE_URL") or os.getenv("DATABASE_URL")
    if url:
        config = DatabaseConfig(url=url, echo=env_flag("CRONHOUND_STORAGE_ECHO"))
        engine = create_sqlalchemy_engine(config)
        StorageBase.metadata.create_all(engine)
        return SQLLaunchHistory(create_session_factory(engine))

    # Imported lazily: the file backend lives in the scheduler package, which imports storage.
    from cronhound.scheduler.persistence import JsonLaunchHistory

    data_dir = Path(os.getenv("CRONHOUND_DATA_DIR") or Path.cwd() / "data")
    return JsonLaunchHistory(data_dir)

"""Launch record plus SQLAlchemy models for the task/launch table pair.

``LaunchRecord`` is the backend-neutral row handed to the dispatch engine;
``TaskModel``/``LaunchModel`` are the concrete tables used by the SQL backend.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER primary keys.
LaunchId = BigInteger().with_variant(Integer(), "sqlite")

RESET_LOCK_MESSAGE = "The launch lock was reset before completion (reset timeout or overlap)"


class StorageBase(DeclarativeBase):
    """Declarative base for cronhound tables."""


@dataclass(slots=True)
class LaunchRecord:
    """One execution lineage of a task.

    ``id`` is backend-assigned. Backends that only keep the last launch per
    task use the task id as launch id.
    """

    id: int
    task_id: int
    start_time: datetime
    end_time: datetime | None
    is_working: bool
    error_count: int
    error_text: str | None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["start_time"] = self.start_time.isoformat()
        data["end_time"] = self.end_time.isoformat() if self.end_time else None
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LaunchRecord:
        end_time = data.get("end_time")
        return cls(
            id=int(data["id"]),
            task_id=int(data["task_id"]),
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(end_time) if end_time else None,
            is_working=bool(data.get("is_working", False)),
            error_count=int(data.get("error_count", 0)),
            error_text=data.get("error_text"),
        )

    def __str__(self) -> str:
        return json.dumps(self.to_dict())


# --- SQLAlchemy declarative tables -------------------------------------------


class TaskModel(StorageBase):
    """SQLAlchemy table definition for ``cronhound_tasks``."""

    __tablename__ = "cronhound_tasks"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


class LaunchModel(StorageBase):
    """SQLAlchemy table definition for ``cronhound_launches``."""

    __tablename__ = "cronhound_launches"
    __table_args__ = (
        Index("ix_cronhound_launches_state", "task_id", "start_time", "end_time", "is_working", "error_count"),
    )

    id: Mapped[int] = mapped_column(LaunchId, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("cronhound_tasks.id"), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_working: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_text: Mapped[str | None] = mapped_column(Text, nullable=True)

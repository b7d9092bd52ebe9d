"""SQLAlchemy-backed launch history implementation."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable

from sqlalchemy import desc, select
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from cronhound.timeutils import ensure_aware, utcnow

from ..engine import SessionFactory, session_scope
from ..models import RESET_LOCK_MESSAGE, LaunchModel, LaunchRecord, TaskModel
from .launch_repo import LaunchHistoryRepository


class SQLLaunchHistory(LaunchHistoryRepository):
    """Persist task identity + every launch using SQLAlchemy sessions."""

    def __init__(self, session_factory: SessionFactory, clock: Callable[[], datetime] = utcnow):
        self._session_factory = session_factory
        self._clock = clock

    # -- Task identity --------------------------------------------------------
    def _check_task(self, session: Session, task_id: int, task_type: str, name: str, description: str) -> bool:
        """Refresh the task row. False when the task is new or was changed."""
        now = self._clock()
        model = session.get(TaskModel, task_id)
        if model is None:
            session.add(
                TaskModel(id=task_id, type=task_type, name=name, description=description, last_activity=now)
            )
            return False

        model.last_activity = now
        if model.type != task_type or model.name != name or (model.description or "") != description:
            model.type = task_type
            model.name = name
            model.description = description
            return False
        return True

    # -- Launch helpers -------------------------------------------------------
    @staticmethod
    def _model_to_record(model: LaunchModel) -> LaunchRecord:
        return LaunchRecord(
            id=model.id,
            task_id=model.task_id,
            start_time=ensure_aware(model.start_time),
            end_time=ensure_aware(model.end_time),
            is_working=bool(model.is_working),
            error_count=model.error_count or 0,
            error_text=model.error_text,
        )

    @staticmethod
    def _get_launch_model(session: Session, launch_id: int) -> LaunchModel:
        model = session.get(LaunchModel, launch_id)
        if model is None:
            raise NoResultFound(f"Launch {launch_id} not found")
        return model

    def get_last_launch(
        self, task_id: int, task_type: str, task_name: str, task_description: str
    ) -> LaunchRecord | None:
        with session_scope(self._session_factory) as session:
            if not self._check_task(session, task_id, task_type, task_name, task_description):
                return None
            stmt = (
                select(LaunchModel)
                .where(LaunchModel.task_id == task_id)
                .order_by(desc(LaunchModel.start_time), desc(LaunchModel.id))
                .limit(1)
            )
            model = session.execute(stmt).scalar_one_or_none()
            return self._model_to_record(model) if model else None

    def start_new_launch(self, task_id: int) -> int:
        with session_scope(self._session_factory) as session:
            model = LaunchModel(task_id=task_id, start_time=self._clock(), is_working=True, error_count=0)
            session.add(model)
            session.flush()
            return model.id

    def restart_existing_launch(self, id: int) -> int:
        with session_scope(self._session_factory) as session:
            model = self._get_launch_model(session, id)
            model.start_time = self._clock()
            model.end_time = None
            model.is_working = True
            return id

    def complete_launch_successfully(self, id: int) -> None:
        with session_scope(self._session_factory) as session:
            model = self._get_launch_model(session, id)
            model.end_time = self._clock()
            model.is_working = False
            model.error_count = 0
            model.error_text = None

    def complete_launch_unsuccessfully(self, id: int, error_text: str) -> int:
        with session_scope(self._session_factory) as session:
            model = self._get_launch_model(session, id)
            model.end_time = self._clock()
            model.is_working = False
            model.error_count = (model.error_count or 0) + 1
            model.error_text = error_text
            return model.error_count

    def reset_lock(self, id: int) -> None:
        with session_scope(self._session_factory) as session:
            model = self._get_launch_model(session, id)
            model.end_time = self._clock()
            model.is_working = False
            model.error_count = (model.error_count or 0) + 1
            model.error_text = RESET_LOCK_MESSAGE

    # -- Introspection --------------------------------------------------------
    def list_launches(self, *, task_id: int | None = None, limit: int = 100) -> Iterable[LaunchRecord]:
        with session_scope(self._session_factory) as session:
            stmt = select(LaunchModel).order_by(desc(LaunchModel.start_time), desc(LaunchModel.id)).limit(limit)
            if task_id is not None:
                stmt = stmt.where(LaunchModel.task_id == task_id)
            models = session.execute(stmt).scalars().all()
            return [self._model_to_record(model) for model in models]

"""Database engine scaffolding backed by SQLAlchemy."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, TypeAlias

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

SessionFactory: TypeAlias = sessionmaker[Session]


@dataclass(slots=True)
class DatabaseConfig:
    """Connection configuration for the SQL launch history."""

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int | None = 1800
    pool_pre_ping: bool = True


def create_sqlalchemy_engine(config: DatabaseConfig) -> Engine:
    """Create a synchronous SQLAlchemy engine.

    SQLite gets the dialect's default pool; queue pool tuning only applies to
    server databases.
    """

    if make_url(config.url).get_backend_name() == "sqlite":
        return create_engine(config.url, echo=config.echo)
    return create_engine(
        config.url,
        echo=config.echo,
        pool_size=config.pool_size,
        pool_timeout=config.pool_timeout,
        max_overflow=config.max_overflow,
        pool_recycle=config.pool_recycle,
        pool_pre_ping=config.pool_pre_ping,
    )


def create_session_factory(engine: Engine) -> SessionFactory:
    """Produce the session factory bound to ``engine``."""

    return sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: SessionFactory) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on failure."""

    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

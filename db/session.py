"""
db/session.py

Engine, session factory and table bootstrap for the key-value store.

The engine is built lazily on first use so importing the API or the CLI
never opens a connection.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


def _env_flag(name: str) -> bool:
    return (os.getenv(name) or "").strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, ""))
    except ValueError:
        return default


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": _env_flag("SQL_ECHO")}
    if url.startswith("sqlite"):
        # Weather workers and the API threadpool share connections.
        options["connect_args"] = {"check_same_thread": False}
        return options
    options.update(
        pool_pre_ping=True,
        pool_recycle=_env_int("DB_POOL_RECYCLE", 1800),
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
    )
    return options


def create_db_engine(database_url: str | None = None) -> Engine:
    url = database_url or resolve_database_url()
    return create_engine(url, **_engine_options(url))


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first call."""
    return create_db_engine()


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def SessionLocal() -> Session:
    """Open a session on the process-wide engine."""
    return _session_factory()()


def init_db(engine: Engine | None = None) -> None:
    """
    Create the store tables when they are missing. Existing tables are left untouched.
    """

    import db.models  # noqa: F401  registers ORM models on Base.metadata
    from db.base import Base

    Base.metadata.create_all(engine or get_engine())

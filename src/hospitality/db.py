"""
Database helpers shared by the check-in services.

A ``Store`` owns one engine and one session factory. It is built once by the
app factory (or the CLI) and handed to every service explicitly.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hospitality.config import AppConfig
from hospitality.logging_config import get_logger

logger = get_logger(__name__)

SLOW_QUERY_SECONDS = 1.0


def build_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine with pool settings suited to the backend.

    SQLite (tests, local runs) gets a single shared connection so in-memory
    databases survive across sessions.
    """
    engine_kwargs: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
    }

    if database_url.startswith("sqlite"):
        engine_kwargs = {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }

    engine = create_engine(database_url, **engine_kwargs)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_SECONDS:
            logger.warning(f"Slow query detected ({total:.2f}s): {statement[:200]}...")

    return engine


class Store:
    """Handle on the relational store: engine plus transactional sessions."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> Store:
        return cls(build_engine(config.sqlalchemy_uri))

    @classmethod
    def from_url(cls, database_url: str) -> Store:
        return cls(build_engine(database_url))

    def create_all(self, metadata) -> None:
        """
        Ensure all tables declared on the provided metadata exist.
        """
        try:
            metadata.create_all(self.engine)
            logger.info("Database schema created successfully")
        except OperationalError as exc:
            logger.warning("Schema creation warning: %s", exc)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Provide a transactional scope around a series of operations.

        Commits when the block exits normally, rolls back and re-raises on any
        exception, and always closes the session.
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()

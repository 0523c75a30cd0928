from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import Settings
from pathengine.db.models import Base
from pathengine.db.queries import NODE_COUNT_MISMATCHES

SessionFactory = sessionmaker[Session]

# Execution option marking connections that never write
READ_ONLY = "read_only"


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for ``url``.

    SQLite is supported for tests and offline use: connections may cross
    threads, in-memory databases share one connection, foreign keys are
    enforced and write transactions take the write lock when they begin.
    Connections carrying the ``read_only`` execution option (``read_scope``,
    ``validate_node_counts``) open a plain deferred transaction instead.
    """
    if _is_sqlite(url):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, _record):
            # SQLAlchemy emits BEGIN itself (see _begin)
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin(conn):
            if conn.get_execution_options().get(READ_ONLY):
                conn.exec_driver_sql("BEGIN")
            else:
                # Writers wait on the busy timeout instead of failing a lock upgrade
                conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


def engine_from_settings(settings: Settings) -> Engine:
    """Get an engine configured from application settings."""
    return create_db_engine(settings.database_url, echo=settings.database_echo)


def create_session_factory(engine: Engine) -> SessionFactory:
    """Session factory; objects stay readable after their transaction commits."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


@contextmanager
def session_scope(factory: SessionFactory) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def read_scope(factory: SessionFactory) -> Generator[Session, None, None]:
    """Read-only session; never commits."""
    session = factory()
    try:
        session.connection(execution_options={READ_ONLY: True})
        yield session
    finally:
        session.close()


# --------------------------------------------------
# Data integrity validation
# Validates cached num_nodes match actual node rows. Run via CLI or tests.
# --------------------------------------------------
def validate_node_counts(engine: Engine) -> dict[str, Any]:
    """
    Validate learning_paths.num_nodes matches actual learning_path_nodes counts.

    Returns dict with:
        - valid: bool - True if all counts match
        - mismatches: list of {path_id, claimed, actual} for any mismatches
    """
    with engine.connect().execution_options(**{READ_ONLY: True}) as conn:
        result = conn.execute(text(NODE_COUNT_MISMATCHES))
        mismatches = [
            {"path_id": row.path_id, "claimed": row.claimed, "actual": row.actual}
            for row in result.fetchall()
        ]
    if mismatches:
        logger.warning(f"Found {len(mismatches)} paths with stale num_nodes")
    return {
        "valid": len(mismatches) == 0,
        "mismatches": mismatches,
    }

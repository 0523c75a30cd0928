"""
Unit tests for session scopes and the SQLite transaction hooks.
"""

import pytest
from sqlalchemy import event, select

from pathengine.db import create_db_engine, create_session_factory, init_db, validate_node_counts
from pathengine.db.database import read_scope, session_scope
from pathengine.db.models import LearningPath


@pytest.fixture
def begins(db_engine):
    """BEGIN statements sent to the database, in order."""
    seen = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("BEGIN"):
            seen.append(statement)

    event.listen(db_engine, "before_cursor_execute", _record)
    yield seen
    event.remove(db_engine, "before_cursor_execute", _record)


class TestTransactionBegin:
    """Only write transactions take the SQLite write lock up front."""

    def test_read_scope_begins_deferred(self, session_factory, begins):
        with read_scope(session_factory) as session:
            session.scalars(select(LearningPath)).all()

        assert begins == ["BEGIN"]

    def test_session_scope_begins_immediate(self, session_factory, begins):
        with session_scope(session_factory) as session:
            session.add(LearningPath(hruid="lp-1", language="nl", title="Write"))

        assert begins == ["BEGIN IMMEDIATE"]

    def test_validate_node_counts_reads_deferred(self, db_engine, begins):
        assert validate_node_counts(db_engine)["valid"]
        assert begins == ["BEGIN"]


class TestFileDatabaseReaders:
    def test_overlapping_readers(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'paths.db'}")
        try:
            init_db(engine)
            factory = create_session_factory(engine)
            with session_scope(factory) as session:
                session.add(LearningPath(hruid="lp-1", language="nl", title="Shared"))

            with read_scope(factory) as outer:
                assert outer.scalars(select(LearningPath.title)).all() == ["Shared"]
                with read_scope(factory) as inner:
                    assert inner.scalars(select(LearningPath.title)).all() == ["Shared"]
        finally:
            engine.dispose()

"""Per-student completion flags for local learning objects."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pathengine.db.database import SessionFactory, read_scope, session_scope
from pathengine.db.models import LearningObject, LearningObjectProgress
from pathengine.errors import NotFoundError


@dataclass(frozen=True)
class ProgressRecord:
    student_id: int
    learning_object_id: str
    done: bool


class ProgressTracker:
    """
    Start and complete local learning objects for students.

    Catalog objects are not tracked. A record only ever moves from
    not-done to done.
    """

    def __init__(self, session_factory: SessionFactory):
        self._factory = session_factory

    @staticmethod
    def _to_record(row: LearningObjectProgress) -> ProgressRecord:
        return ProgressRecord(row.student_id, row.learning_object_id, bool(row.done))

    @staticmethod
    def _find(session: Session, student_id: int, object_id: str) -> LearningObjectProgress | None:
        return session.scalar(
            select(LearningObjectProgress).where(
                LearningObjectProgress.student_id == student_id,
                LearningObjectProgress.learning_object_id == object_id,
            )
        )

    def get(self, student_id: int, object_id: str) -> ProgressRecord:
        with read_scope(self._factory) as session:
            row = self._find(session, student_id, object_id)
            if row is None:
                raise NotFoundError(
                    f"No progress for student {student_id} on learning object {object_id}"
                )
            return self._to_record(row)

    def start(self, student_id: int, object_id: str) -> ProgressRecord:
        """Create a not-done record; returns the existing one if present."""
        try:
            with session_scope(self._factory) as session:
                if session.get(LearningObject, object_id) is None:
                    raise NotFoundError(f"Learning object {object_id} not found")
                row = self._find(session, student_id, object_id)
                if row is None:
                    row = LearningObjectProgress(
                        student_id=student_id, learning_object_id=object_id, done=False
                    )
                    session.add(row)
                    session.flush()
                    logger.debug(f"Student {student_id} started learning object {object_id}")
                return self._to_record(row)
        except IntegrityError:
            # Lost a race with a concurrent start of the same pair
            return self.get(student_id, object_id)

    def mark_done(self, student_id: int, object_id: str) -> ProgressRecord:
        with session_scope(self._factory) as session:
            row = self._find(session, student_id, object_id)
            if row is None:
                raise NotFoundError(
                    f"No progress for student {student_id} on learning object {object_id}"
                )
            if not row.done:
                row.done = True
                logger.info(f"Student {student_id} completed learning object {object_id}")
            return self._to_record(row)

    def count_done(self, student_id: int, object_ids: Iterable[str]) -> int:
        """Number of distinct objects among ``object_ids`` the student has completed."""
        ids = set(object_ids)
        if not ids:
            return 0
        with read_scope(self._factory) as session:
            return session.scalar(
                select(func.count(func.distinct(LearningObjectProgress.learning_object_id))).where(
                    LearningObjectProgress.student_id == student_id,
                    LearningObjectProgress.learning_object_id.in_(ids),
                    LearningObjectProgress.done.is_(True),
                )
            ) or 0

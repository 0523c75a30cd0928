"""Per-student completion flags for locally stored learning objects."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class LearningObjectProgress(Base):
    """(student, local object) -> done. Catalog objects are never tracked."""

    __tablename__ = "learning_object_progress"
    __table_args__ = (
        UniqueConstraint("student_id", "learning_object_id", name="uq_progress_student_object"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    learning_object_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("learning_objects.id", ondelete="CASCADE"), nullable=False
    )
    done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

"""Student questions, optionally pinned to a learning object or a learning path."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow
from .content import REFERENCE_VARIANT_SQL, ContentReferenceMixin


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
    )
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # SPECIFIC | GENERAL
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    messages: Mapped[list[QuestionMessage]] = relationship(
        back_populates="question", cascade="all, delete-orphan"
    )
    specific: Mapped[QuestionSpecific | None] = relationship(
        back_populates="question", cascade="all, delete-orphan", uselist=False
    )
    general: Mapped[QuestionGeneral | None] = relationship(
        back_populates="question", cascade="all, delete-orphan", uselist=False
    )


class QuestionMessage(Base):
    __tablename__ = "question_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    question: Mapped[Question] = relationship(back_populates="messages")


class QuestionSpecific(ContentReferenceMixin, Base):
    """Question about one learning object (local or catalog)."""

    __tablename__ = "question_specific"
    __table_args__ = (
        CheckConstraint(REFERENCE_VARIANT_SQL, name="ck_question_reference_variant"),
    )

    question_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )

    question: Mapped[Question] = relationship(back_populates="specific")


class QuestionGeneral(Base):
    """Question about a whole learning path (local id, or catalog hruid + language)."""

    __tablename__ = "question_general"

    question_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )
    path_ref: Mapped[str] = mapped_column(Text, nullable=False)
    is_external: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    catalog_language: Mapped[str | None] = mapped_column(Text)

    question: Mapped[Question] = relationship(back_populates="general")

"""
Team and assignment tables.

Only what the progress aggregator and question service read: which
students form a team, which teams work on an assignment, and which path
an assignment is about.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow


class Assignment(Base):
    """A path handed out to one or more teams."""

    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Not a foreign key: the path may live in the external catalog.
    learning_path_id: Mapped[str] = mapped_column(String(64), nullable=False)
    is_external: Mapped[bool] = mapped_column(Boolean, default=False)
    title: Mapped[str] = mapped_column(Text, default="")
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    team_assignments: Mapped[list[TeamAssignment]] = relationship(
        back_populates="assignment", cascade="all, delete-orphan"
    )


class Team(Base):
    """Group of students bound to (at most) one assignment."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, default="")
    class_id: Mapped[int | None] = mapped_column(Integer)

    # Relationships
    members: Mapped[list[TeamMember]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )
    team_assignment: Mapped[TeamAssignment | None] = relationship(
        back_populates="team", cascade="all, delete-orphan", uselist=False
    )


class TeamMember(Base):
    __tablename__ = "team_members"

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )
    student_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    team: Mapped[Team] = relationship(back_populates="members")


class TeamAssignment(Base):
    __tablename__ = "team_assignments"

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    team: Mapped[Team] = relationship(back_populates="team_assignment")
    assignment: Mapped[Assignment] = relationship(back_populates="team_assignments")

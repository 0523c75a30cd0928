"""
Team and assignment lookups consumed by the progress aggregator.

The aggregator depends only on the ``TeamDirectory`` protocol; the SQL
implementation reads the classroom tables of the local store.
"""
from __future__ import annotations

from typing import Protocol

from sqlalchemy import select

from pathengine.db.database import SessionFactory, read_scope
from pathengine.db.models import Assignment, Team, TeamAssignment, TeamMember
from pathengine.errors import NotFoundError


class TeamDirectory(Protocol):
    def team_members(self, team_id: int) -> list[int]: ...

    def teams_for_assignment(self, assignment_id: int) -> list[int]: ...

    def assignment_path_id(self, assignment_id: int) -> str: ...

    def assignment_for_team(self, team_id: int) -> int: ...


class SqlTeamDirectory:
    """``TeamDirectory`` backed by the teams/assignments tables."""

    def __init__(self, session_factory: SessionFactory):
        self._factory = session_factory

    def team_members(self, team_id: int) -> list[int]:
        """Student ids of a team (empty list for a team without members)."""
        with read_scope(self._factory) as session:
            if session.get(Team, team_id) is None:
                raise NotFoundError(f"Team {team_id} not found")
            return list(session.scalars(
                select(TeamMember.student_id)
                .where(TeamMember.team_id == team_id)
                .order_by(TeamMember.student_id)
            ))

    def teams_for_assignment(self, assignment_id: int) -> list[int]:
        with read_scope(self._factory) as session:
            return list(session.scalars(
                select(TeamAssignment.team_id)
                .where(TeamAssignment.assignment_id == assignment_id)
                .order_by(TeamAssignment.team_id)
            ))

    def assignment_path_id(self, assignment_id: int) -> str:
        with read_scope(self._factory) as session:
            assignment = session.get(Assignment, assignment_id)
            if assignment is None:
                raise NotFoundError(f"Assignment {assignment_id} not found")
            return assignment.learning_path_id

    def assignment_for_team(self, team_id: int) -> int:
        with read_scope(self._factory) as session:
            if session.get(Team, team_id) is None:
                raise NotFoundError(f"Team {team_id} not found")
            link = session.get(TeamAssignment, team_id)
            if link is None:
                raise NotFoundError(f"Team {team_id} has no assignment")
            return link.assignment_id

"""
Progress aggregation.

Percentages are derived, never stored:

    student  = done local objects / all nodes * 100
    team     = max over members of the student percentage
    class    = mean over the assignment's teams of the team percentage

Catalog nodes count toward the denominator but can never be completed
through this engine, so a path holding catalog nodes stays below 100%.
Values are not rounded here.
"""
from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from pathengine.errors import NotFoundError
from pathengine.paths.nodes import PathNodeManager

from .directory import TeamDirectory
from .tracker import ProgressTracker


@dataclass(frozen=True)
class PathScope:
    """What a percentage is computed against: node total and local object ids."""

    path_id: str
    total_nodes: int
    local_object_ids: frozenset[str]


class ProgressAggregator:
    """Student, team and assignment progress over a path's nodes."""

    def __init__(
        self,
        nodes: PathNodeManager,
        progress: ProgressTracker,
        directory: TeamDirectory,
    ):
        self.nodes = nodes
        self.progress = progress
        self.directory = directory

    def _scope(self, path_id: str) -> PathScope:
        total = self.nodes.count_nodes(path_id)
        if total == 0:
            raise NotFoundError(f"Learning path {path_id} has no nodes")
        return PathScope(path_id, total, frozenset(self.nodes.local_object_ids(path_id)))

    def _student_percent(self, student_id: int, scope: PathScope) -> float:
        done = self.progress.count_done(student_id, scope.local_object_ids)
        return done / scope.total_nodes * 100

    def _team_percent(self, team_id: int, scope: PathScope) -> float:
        members = self.directory.team_members(team_id)
        if not members:
            return 0.0
        return max(self._student_percent(student_id, scope) for student_id in members)

    # ========================================
    # Queries
    # ========================================

    def student_path_progress(self, student_id: int, path_id: str) -> float:
        """
        Percentage of a path's nodes the student has completed.

        Raises:
            NotFoundError: The path has no nodes
        """
        return self._student_percent(student_id, self._scope(path_id))

    def team_path_progress(self, team_id: int, path_id: str) -> float:
        """Best member's percentage; 0.0 for a team without members."""
        return self._team_percent(team_id, self._scope(path_id))

    def assignment_average_progress(self, assignment_id: int) -> float:
        """
        Mean team percentage over every team bound to the assignment.

        Raises:
            NotFoundError: Unknown assignment, empty path, or no teams
        """
        scope = self._scope(self.directory.assignment_path_id(assignment_id))
        team_ids = self.directory.teams_for_assignment(assignment_id)
        if not team_ids:
            raise NotFoundError(f"Assignment {assignment_id} has no teams")
        percents = [self._team_percent(team_id, scope) for team_id in team_ids]
        average = sum(percents) / len(percents)
        logger.debug(f"Assignment {assignment_id}: {len(team_ids)} teams, average {average:.1f}%")
        return average

    def team_assignment_progress(self, team_id: int) -> float:
        """Team percentage on the path of the team's own assignment."""
        assignment_id = self.directory.assignment_for_team(team_id)
        return self.team_path_progress(team_id, self.directory.assignment_path_id(assignment_id))

    def student_assignment_progress(self, student_id: int, assignment_id: int) -> float:
        path_id = self.directory.assignment_path_id(assignment_id)
        return self.student_path_progress(student_id, path_id)

"""
Shared queries for the local content store.

Usage:
    from pathengine.db.queries import recount_path_nodes

    with session_scope(factory) as session:
        recount_path_nodes(session, path_id)
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import LearningPath, LearningPathNode

# Paths whose cached num_nodes disagrees with their actual node rows
NODE_COUNT_MISMATCHES = """
    SELECT
        lp.id AS path_id,
        lp.num_nodes AS claimed,
        COALESCE(sub.actual_count, 0) AS actual
    FROM learning_paths lp
    LEFT JOIN (
        SELECT learning_path_id, COUNT(*) AS actual_count
        FROM learning_path_nodes
        GROUP BY learning_path_id
    ) AS sub ON lp.id = sub.learning_path_id
    WHERE lp.num_nodes != COALESCE(sub.actual_count, 0)
"""


def count_path_nodes(session: Session, path_id: str) -> int:
    """Count the node rows currently owned by ``path_id``."""
    return session.scalar(
        select(func.count())
        .select_from(LearningPathNode)
        .where(LearningPathNode.learning_path_id == path_id)
    ) or 0


def recount_path_nodes(session: Session, path_id: str) -> int:
    """
    Recompute and store ``num_nodes`` for a path from its actual rows.

    Must run inside the same transaction as the row mutation it follows.
    Pending inserts/deletes are flushed first so the count sees them.
    """
    session.flush()
    count = count_path_nodes(session, path_id)
    path = session.get(LearningPath, path_id)
    if path is not None:
        path.num_nodes = count
    return count


def lock_path(session: Session, path_id: str) -> LearningPath | None:
    """
    Load a path row with a row-level write lock (SELECT ... FOR UPDATE).

    Serializes node mutators of the same path across processes; other
    paths are unaffected. Backends without row locks ignore the clause.
    """
    return session.scalar(
        select(LearningPath).where(LearningPath.id == path_id).with_for_update()
    )

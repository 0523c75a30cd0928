"""
Local content store.

Keyed CRUD over locally authored learning objects and learning paths.
Ownership and role checks happen upstream; this module only keeps the
rows consistent (hruid generation, node cleanup on delete, cached node
counts).
"""
from __future__ import annotations

import random
import re
import time
from typing import Any

from loguru import logger
from sqlalchemy import delete, func, or_, select

from config import Settings, get_settings
from pathengine.db.database import SessionFactory, read_scope, session_scope
from pathengine.db.models import (
    LearningObject,
    LearningObjectProgress,
    LearningPath,
    LearningPathNode,
    QuestionSpecific,
)
from pathengine.db.queries import lock_path, recount_path_nodes
from pathengine.errors import InvalidRelationError, NotFoundError

from .records import ContentRecord, PathSummary

# Columns a caller may change on an existing local object
UPDATABLE_OBJECT_FIELDS = frozenset({
    "title",
    "description",
    "content_type",
    "keywords",
    "target_ages",
    "teacher_exclusive",
    "available",
    "difficulty",
    "estimated_time",
    "copyright",
    "licence",
    "content_location",
})

UPDATABLE_PATH_FIELDS = frozenset({"title", "language", "description", "image"})


def slugify(title: str) -> str:
    """Lower-case, dash-separated form of a title."""
    slug = re.sub(r"\s+", "-", title.strip().lower())
    slug = re.sub(r"[^\w-]", "", slug)
    return slug or "object"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def generate_object_hruid(title: str) -> str:
    return f"{slugify(title)}-{_epoch_ms()}"


def generate_path_hruid() -> str:
    return f"lp-{_epoch_ms()}-{random.randint(0, 999)}"


class LocalContentStore:
    """Access to locally authored objects and paths."""

    def __init__(self, session_factory: SessionFactory, settings: Settings | None = None):
        self._factory = session_factory
        self._settings = settings or get_settings()

    # ========================================
    # Learning objects
    # ========================================

    def get_object(self, object_id: str) -> ContentRecord | None:
        with read_scope(self._factory) as session:
            obj = session.get(LearningObject, object_id)
            return ContentRecord.from_model(obj) if obj else None

    def get_object_by_triple(self, hruid: str, language: str, version: int) -> ContentRecord | None:
        with read_scope(self._factory) as session:
            obj = session.scalar(
                select(LearningObject).where(
                    LearningObject.hruid == hruid,
                    LearningObject.language == language,
                    LearningObject.version == version,
                )
            )
            return ContentRecord.from_model(obj) if obj else None

    def object_exists(self, object_id: str) -> bool:
        with read_scope(self._factory) as session:
            return session.get(LearningObject, object_id) is not None

    def list_objects(self, visible_only: bool = False) -> list[ContentRecord]:
        return self.search_objects(None, visible_only=visible_only)

    def search_objects(self, term: str | None, visible_only: bool = False) -> list[ContentRecord]:
        """
        Search local objects by title, description or keyword.

        Args:
            term: Case-insensitive substring of title/description, or an
                exact keyword. ``None`` lists everything.
            visible_only: Drop teacher-exclusive and unavailable objects
        """
        stmt = select(LearningObject).order_by(LearningObject.created_at, LearningObject.id)
        if visible_only:
            stmt = stmt.where(
                LearningObject.teacher_exclusive.is_(False),
                LearningObject.available.is_(True),
            )
        if term:
            pattern = f"%{term.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(LearningObject.title).like(pattern),
                    func.lower(LearningObject.description).like(pattern),
                )
            )
        with read_scope(self._factory) as session:
            records = [ContentRecord.from_model(obj) for obj in session.scalars(stmt)]
            if term:
                # Keyword match is done here; JSON containment differs per backend
                matched = {r.id for r in records}
                for obj in session.scalars(select(LearningObject).order_by(LearningObject.created_at)):
                    if obj.id in matched or term not in (obj.keywords or []):
                        continue
                    if visible_only and (obj.teacher_exclusive or not obj.available):
                        continue
                    records.append(ContentRecord.from_model(obj))
        return records

    def create_object(
        self,
        title: str,
        creator_id: int | None = None,
        language: str | None = None,
        version: int = 1,
        **fields: Any,
    ) -> ContentRecord:
        """
        Create a local learning object.

        The hruid is derived from the title and the current time, so two
        objects with the same title stay distinguishable.
        """
        unknown = set(fields) - UPDATABLE_OBJECT_FIELDS
        if unknown:
            raise ValueError(f"Unknown learning object fields: {', '.join(sorted(unknown))}")
        fields.setdefault("licence", self._settings.default_licence)

        obj = LearningObject(
            hruid=generate_object_hruid(title),
            language=language or self._settings.default_language,
            version=version,
            title=title,
            creator_id=creator_id,
            **fields,
        )
        with session_scope(self._factory) as session:
            session.add(obj)
            session.flush()
            record = ContentRecord.from_model(obj)
        logger.info(f"Created local learning object {record.id} ({record.hruid})")
        return record

    def update_object(self, object_id: str, **changes: Any) -> ContentRecord:
        unknown = set(changes) - UPDATABLE_OBJECT_FIELDS
        if unknown:
            raise ValueError(f"Unknown learning object fields: {', '.join(sorted(unknown))}")
        with session_scope(self._factory) as session:
            obj = session.get(LearningObject, object_id)
            if obj is None:
                raise NotFoundError(f"Learning object {object_id} not found")
            for name, value in changes.items():
                setattr(obj, name, value)
            session.flush()
            return ContentRecord.from_model(obj)

    def delete_object(self, object_id: str) -> list[str]:
        """
        Delete a local object, every node pointing at it and its progress.

        Each affected path is locked and recounted in the same transaction.

        Returns:
            Ids of the paths that lost nodes

        Raises:
            NotFoundError: No local object with this id
            InvalidRelationError: Student questions still point at the object
        """
        with session_scope(self._factory) as session:
            obj = session.get(LearningObject, object_id)
            if obj is None:
                raise NotFoundError(f"Learning object {object_id} not found")
            asked = session.scalar(
                select(func.count()).select_from(QuestionSpecific).where(
                    QuestionSpecific.local_learning_object_id == object_id
                )
            )
            if asked:
                raise InvalidRelationError(
                    f"Learning object {object_id} is referenced by {asked} question(s)"
                )

            path_ids = sorted(set(session.scalars(
                select(LearningPathNode.learning_path_id).where(
                    LearningPathNode.local_learning_object_id == object_id
                )
            )))
            # Sorted lock order keeps concurrent deletes from deadlocking
            for path_id in path_ids:
                lock_path(session, path_id)

            session.execute(
                delete(LearningPathNode).where(
                    LearningPathNode.local_learning_object_id == object_id
                )
            )
            session.execute(
                delete(LearningObjectProgress).where(
                    LearningObjectProgress.learning_object_id == object_id
                )
            )
            session.delete(obj)
            for path_id in path_ids:
                recount_path_nodes(session, path_id)

        logger.info(f"Deleted local learning object {object_id} (paths touched: {len(path_ids)})")
        return path_ids

    # ========================================
    # Learning paths
    # ========================================

    def create_path(
        self,
        title: str,
        language: str | None = None,
        creator_id: int | None = None,
        description: str = "",
        image: str | None = None,
    ) -> PathSummary:
        path = LearningPath(
            hruid=generate_path_hruid(),
            title=title,
            language=language or self._settings.default_language,
            description=description,
            image=image,
            creator_id=creator_id,
            num_nodes=0,
        )
        with session_scope(self._factory) as session:
            session.add(path)
            session.flush()
            summary = PathSummary.from_model(path)
        logger.info(f"Created local learning path {summary.id} ({summary.hruid})")
        return summary

    def get_path(self, path_id: str) -> PathSummary | None:
        with read_scope(self._factory) as session:
            path = session.get(LearningPath, path_id)
            return PathSummary.from_model(path) if path else None

    def get_path_by_hruid(self, hruid: str) -> PathSummary | None:
        with read_scope(self._factory) as session:
            path = session.scalar(select(LearningPath).where(LearningPath.hruid == hruid))
            return PathSummary.from_model(path) if path else None

    def get_path_by_id_or_hruid(self, id_or_hruid: str) -> PathSummary | None:
        return self.get_path(id_or_hruid) or self.get_path_by_hruid(id_or_hruid)

    def path_exists(self, path_id: str) -> bool:
        with read_scope(self._factory) as session:
            return session.get(LearningPath, path_id) is not None

    def search_paths(
        self,
        language: str | None = None,
        hruid: str | None = None,
        title: str | None = None,
        description: str | None = None,
        all: str | None = None,
    ) -> list[PathSummary]:
        """
        Search local paths.

        ``all`` (any value, even empty) disables every other filter. Title
        and description match case-insensitive substrings.
        """
        stmt = select(LearningPath).order_by(LearningPath.created_at, LearningPath.id)
        if all is None:
            if language:
                stmt = stmt.where(LearningPath.language == language)
            if hruid:
                stmt = stmt.where(LearningPath.hruid == hruid)
            if title:
                stmt = stmt.where(func.lower(LearningPath.title).like(f"%{title.lower()}%"))
            if description:
                stmt = stmt.where(
                    func.lower(LearningPath.description).like(f"%{description.lower()}%")
                )
        with read_scope(self._factory) as session:
            return [PathSummary.from_model(p) for p in session.scalars(stmt)]

    def update_path(self, path_id: str, **changes: Any) -> PathSummary:
        unknown = set(changes) - UPDATABLE_PATH_FIELDS
        if unknown:
            raise ValueError(f"Unknown learning path fields: {', '.join(sorted(unknown))}")
        with session_scope(self._factory) as session:
            path = session.get(LearningPath, path_id)
            if path is None:
                raise NotFoundError(f"Learning path {path_id} not found")
            for name, value in changes.items():
                setattr(path, name, value)
            session.flush()
            return PathSummary.from_model(path)

    def delete_path(self, path_id: str) -> None:
        """Delete a local path together with its nodes."""
        with session_scope(self._factory) as session:
            path = lock_path(session, path_id)
            if path is None:
                raise NotFoundError(f"Learning path {path_id} not found")
            session.delete(path)
        logger.info(f"Deleted local learning path {path_id}")

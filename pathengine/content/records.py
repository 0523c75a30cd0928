"""
Normalized records handed to callers.

Whatever store a learning object or path comes from, callers receive the
same shape, tagged with its origin. ORM rows never leave the core.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal

from pathengine.catalog.schemas import CatalogObject, CatalogPath
from pathengine.db.models import LearningObject, LearningPath, LearningPathNode
from pathengine.references import ContentReference

Origin = Literal["external", "local"]


@dataclass(frozen=True)
class ContentRecord:
    """A learning object, normalized across both stores."""

    id: str
    hruid: str
    language: str
    version: int
    title: str
    description: str
    content_type: str
    teacher_exclusive: bool
    available: bool
    origin: Origin
    keywords: list[str] = field(default_factory=list)
    target_ages: list[int] = field(default_factory=list)
    difficulty: int = 0
    estimated_time: int = 0
    licence: str = ""
    content_location: str = ""

    @property
    def is_external(self) -> bool:
        return self.origin == "external"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_catalog(cls, obj: CatalogObject) -> ContentRecord:
        return cls(
            id=obj.id or obj.uuid,
            hruid=obj.hruid,
            language=obj.language,
            version=obj.version,
            title=obj.title,
            description=obj.description,
            content_type=obj.content_type,
            teacher_exclusive=obj.teacher_exclusive,
            available=obj.available,
            origin="external",
            keywords=list(obj.keywords),
            target_ages=list(obj.target_ages),
            difficulty=obj.difficulty,
            estimated_time=obj.estimated_time,
            licence=obj.licence,
            content_location=obj.content_location,
        )

    @classmethod
    def from_model(cls, obj: LearningObject) -> ContentRecord:
        return cls(
            id=obj.id,
            hruid=obj.hruid,
            language=obj.language,
            version=obj.version,
            title=obj.title,
            description=obj.description or "",
            content_type=obj.content_type,
            teacher_exclusive=bool(obj.teacher_exclusive),
            available=bool(obj.available),
            origin="local",
            keywords=list(obj.keywords or []),
            target_ages=list(obj.target_ages or []),
            difficulty=obj.difficulty,
            estimated_time=obj.estimated_time,
            licence=obj.licence or "",
            content_location=obj.content_location or "",
        )


@dataclass(frozen=True)
class PathSummary:
    """A learning path, normalized across both stores."""

    id: str
    hruid: str
    language: str
    title: str
    description: str
    num_nodes: int
    is_external: bool
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_catalog(cls, path: CatalogPath) -> PathSummary:
        return cls(
            id=path.id,
            hruid=path.hruid,
            language=path.language,
            title=path.title,
            description=path.description,
            num_nodes=path.num_nodes or len(path.nodes),
            is_external=True,
            image=path.image,
        )

    @classmethod
    def from_model(cls, path: LearningPath) -> PathSummary:
        return cls(
            id=path.id,
            hruid=path.hruid,
            language=path.language,
            title=path.title,
            description=path.description or "",
            num_nodes=path.num_nodes,
            is_external=False,
            image=path.image,
        )


@dataclass(frozen=True)
class NodeRecord:
    """Snapshot of one path node after a committed read or write."""

    node_id: str
    path_id: str
    reference: ContentReference
    start_node: bool
    created_at: datetime | None = None

    @property
    def is_external(self) -> bool:
        return self.reference.is_external

    @classmethod
    def from_model(cls, node: LearningPathNode) -> NodeRecord:
        return cls(
            node_id=node.node_id,
            path_id=node.learning_path_id,
            reference=node.reference,
            start_node=bool(node.start_node),
            created_at=node.created_at,
        )

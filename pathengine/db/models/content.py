"""
Local content store models: learning objects, learning paths and path nodes.

These tables hold locally authored content only. Catalog objects are never
copied here; nodes and questions point at them through the catalog triple.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pathengine.references import ContentReference, ExternalRef, LocalRef

from .base import Base, new_id, utcnow

# Exactly one of the two reference field sets is populated.
REFERENCE_VARIANT_SQL = (
    "(is_external AND local_learning_object_id IS NULL "
    "AND catalog_hruid IS NOT NULL AND catalog_language IS NOT NULL "
    "AND catalog_version IS NOT NULL) "
    "OR (NOT is_external AND local_learning_object_id IS NOT NULL "
    "AND catalog_hruid IS NULL AND catalog_language IS NULL "
    "AND catalog_version IS NULL)"
)


class ContentReferenceMixin:
    """Columns storing a Local-or-External content reference."""

    is_external: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    local_learning_object_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("learning_objects.id")
    )
    catalog_hruid: Mapped[str | None] = mapped_column(Text)
    catalog_language: Mapped[str | None] = mapped_column(Text)
    catalog_version: Mapped[int | None] = mapped_column(Integer)

    @property
    def reference(self) -> ContentReference:
        if self.is_external:
            return ExternalRef(
                hruid=self.catalog_hruid,
                language=self.catalog_language,
                version=self.catalog_version,
            )
        return LocalRef(object_id=self.local_learning_object_id)

    def set_reference(self, reference: ContentReference) -> None:
        """Store ``reference``, clearing every field of the other variant."""
        if isinstance(reference, ExternalRef):
            self.is_external = True
            self.local_learning_object_id = None
            self.catalog_hruid = reference.hruid
            self.catalog_language = reference.language
            self.catalog_version = reference.version
        else:
            self.is_external = False
            self.local_learning_object_id = reference.object_id
            self.catalog_hruid = None
            self.catalog_language = None
            self.catalog_version = None


class LearningObject(Base):
    """Atomic content unit authored by a teacher."""

    __tablename__ = "learning_objects"
    __table_args__ = (UniqueConstraint("hruid", "language", "version", name="uq_object_triple"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hruid: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    content_type: Mapped[str] = mapped_column(Text, default="text/plain")
    keywords: Mapped[list[str]] = mapped_column(JSON, default=list)
    target_ages: Mapped[list[int]] = mapped_column(JSON, default=list)
    teacher_exclusive: Mapped[bool] = mapped_column(Boolean, default=False)
    available: Mapped[bool] = mapped_column(Boolean, default=True)
    difficulty: Mapped[int] = mapped_column(Integer, default=1)
    estimated_time: Mapped[int] = mapped_column(Integer, default=0)
    copyright: Mapped[str] = mapped_column(Text, default="")
    licence: Mapped[str] = mapped_column(Text, default="")
    content_location: Mapped[str | None] = mapped_column(Text)
    creator_id: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class LearningPath(Base):
    """Locally authored curriculum; ``num_nodes`` is maintained by the node manager."""

    __tablename__ = "learning_paths"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hruid: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    image: Mapped[str | None] = mapped_column(Text)
    num_nodes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    creator_id: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    nodes: Mapped[list[LearningPathNode]] = relationship(
        back_populates="learning_path",
        cascade="all, delete-orphan",
        order_by="LearningPathNode.created_at",
    )


class LearningPathNode(ContentReferenceMixin, Base):
    """One entry of a learning path, pointing at a local or catalog object."""

    __tablename__ = "learning_path_nodes"
    __table_args__ = (CheckConstraint(REFERENCE_VARIANT_SQL, name="ck_node_reference_variant"),)

    node_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    learning_path_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("learning_paths.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_node: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    learning_path: Mapped[LearningPath] = relationship(back_populates="nodes")

    def __repr__(self) -> str:
        return (
            f"<LearningPathNode {self.node_id} path={self.learning_path_id} "
            f"ref={self.reference.describe()} start={self.start_node}>"
        )

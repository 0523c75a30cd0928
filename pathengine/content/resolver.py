"""
Content resolution across the local store and the external catalog.

Typed references are answered by the store that owns them, with no
fallback. A bare id of unknown origin is tried against the catalog
first and the local store second. The same visibility policy applies to
both origins:

- teacher-exclusive content is refused to non-teachers (AccessDenied)
- unavailable content is refused to everyone on a direct fetch
  (Unavailable), but silently left out when resolving a whole path
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from pathengine.catalog import CatalogClient
from pathengine.errors import (
    AccessDeniedError,
    InvalidReferenceError,
    NotFoundError,
    UnavailableError,
)
from pathengine.references import ContentReference, ExternalRef, LocalRef

from .local_store import LocalContentStore
from .records import ContentRecord, PathSummary

if TYPE_CHECKING:
    from pathengine.paths.nodes import PathNodeManager

# Failures that drop a single node from a path-wide resolution
SKIPPABLE_NODE_ERRORS = (NotFoundError, AccessDeniedError, UnavailableError, InvalidReferenceError)


def check_visibility(record: ContentRecord, viewer_is_teacher: bool) -> None:
    """
    Raise if ``record`` may not be shown to the viewer.

    Raises:
        AccessDeniedError: Teacher-exclusive record, non-teacher viewer
        UnavailableError: Record is marked unavailable (any viewer)
    """
    if record.teacher_exclusive and not viewer_is_teacher:
        raise AccessDeniedError(f"Learning object {record.hruid} is reserved for teachers")
    if not record.available:
        raise UnavailableError(f"Learning object {record.hruid} is not available")


def is_visible(record: ContentRecord, viewer_is_teacher: bool) -> bool:
    if record.teacher_exclusive and not viewer_is_teacher:
        return False
    return record.available


class ContentResolver:
    """Resolve references and ids to normalized content records."""

    def __init__(
        self,
        catalog: CatalogClient,
        store: LocalContentStore,
        nodes: PathNodeManager,
    ):
        self.catalog = catalog
        self.store = store
        self.nodes = nodes

    # ========================================
    # Single objects
    # ========================================

    def fetch(self, reference: ContentReference) -> ContentRecord:
        """
        Fetch the record a reference points at, without visibility checks.

        Raises:
            NotFoundError: The owning store has no such object
            NetworkError: The catalog could not be reached or answered garbage
        """
        if isinstance(reference, ExternalRef):
            obj = self.catalog.get_by_triple(reference.hruid, reference.language, reference.version)
            return ContentRecord.from_catalog(obj)
        if isinstance(reference, LocalRef):
            record = self.store.get_object(reference.object_id)
            if record is None:
                raise NotFoundError(f"Local learning object {reference.object_id} not found")
            return record
        raise InvalidReferenceError(f"Unsupported content reference: {reference!r}")

    def resolve(self, reference: ContentReference, viewer_is_teacher: bool) -> ContentRecord:
        """
        Resolve one reference for a viewer.

        Args:
            reference: Local or external reference
            viewer_is_teacher: Whether the viewer has teacher privileges

        Returns:
            The normalized record

        Raises:
            NotFoundError, AccessDeniedError, UnavailableError, NetworkError
        """
        record = self.fetch(reference)
        check_visibility(record, viewer_is_teacher)
        logger.debug(f"Resolved {reference.describe()} -> {record.origin}:{record.id}")
        return record

    def resolve_by_id(self, object_id: str, viewer_is_teacher: bool) -> ContentRecord:
        """
        Resolve an id of unknown origin: catalog first, then the local store.

        Only a catalog NotFound falls through to the local store; a network
        failure is surfaced.
        """
        try:
            record = ContentRecord.from_catalog(self.catalog.get_by_id(object_id))
        except NotFoundError:
            local = self.store.get_object(object_id)
            if local is None:
                raise NotFoundError(f"Learning object {object_id} not found") from None
            record = local
        check_visibility(record, viewer_is_teacher)
        return record

    # ========================================
    # Whole paths
    # ========================================

    def _path_references(self, path_id: str) -> list[ContentReference]:
        if self.store.path_exists(path_id):
            return [node.reference for node in self.nodes.list_nodes(path_id)]
        try:
            descriptors = self.catalog.list_for_path_id(path_id)
        except NotFoundError:
            raise NotFoundError(f"Learning path {path_id} not found") from None

        references: list[ContentReference] = []
        for descriptor in descriptors:
            try:
                references.append(
                    ExternalRef(descriptor.hruid, descriptor.language, descriptor.version)
                )
            except InvalidReferenceError as e:
                logger.warning(f"Skipping malformed node of catalog path {path_id}: {e}")
        return references

    def resolve_path_objects(self, path_id: str, viewer_is_teacher: bool) -> list[ContentRecord]:
        """
        Resolve every object of a path, skipping nodes the viewer cannot see.

        Local paths are answered from the store without asking the catalog;
        any other id is looked up as a catalog path. A node that is missing,
        forbidden or unavailable is left out with a warning; it never aborts
        the remaining nodes. Network failures still propagate.
        """
        records: list[ContentRecord] = []
        for reference in self._path_references(path_id):
            try:
                records.append(self.resolve(reference, viewer_is_teacher))
            except SKIPPABLE_NODE_ERRORS as e:
                logger.warning(f"Skipping node {reference.describe()} of path {path_id}: {e.kind}")
        return records

    # ========================================
    # Listing & search
    # ========================================

    def list_objects(self, viewer_is_teacher: bool) -> list[ContentRecord]:
        return self.search_objects(None, viewer_is_teacher)

    def search_objects(self, term: str | None, viewer_is_teacher: bool) -> list[ContentRecord]:
        """Catalog matches followed by local matches, filtered for the viewer."""
        visible_only = not viewer_is_teacher
        external = [
            ContentRecord.from_catalog(obj)
            for obj in self.catalog.search_objects(term, visible_only=visible_only)
        ]
        if visible_only:
            external = [r for r in external if is_visible(r, viewer_is_teacher)]
        local = self.store.search_objects(term, visible_only=visible_only)
        return external + local

    def find_path(self, id_or_hruid: str) -> PathSummary:
        """Catalog path by id or hruid, then local path by id, then by hruid."""
        external = self.catalog.get_path(id_or_hruid)
        if external is not None:
            return PathSummary.from_catalog(external)
        local = self.store.get_path_by_id_or_hruid(id_or_hruid)
        if local is None:
            raise NotFoundError(f"Learning path {id_or_hruid} not found")
        return local

    def search_paths(
        self,
        language: str | None = None,
        hruid: str | None = None,
        title: str | None = None,
        description: str | None = None,
        all: str | None = None,
    ) -> list[PathSummary]:
        filters = {
            "language": language,
            "hruid": hruid,
            "title": title,
            "description": description,
            "all": all,
        }
        external = [PathSummary.from_catalog(p) for p in self.catalog.search_paths(**filters)]
        local = self.store.search_paths(**filters)
        return external + local

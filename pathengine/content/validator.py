"""Existence checks run before a reference is stored anywhere."""
from __future__ import annotations

from typing import Any

from loguru import logger

from pathengine.catalog import CatalogClient
from pathengine.errors import InvalidReferenceError, NotFoundError
from pathengine.references import (
    ContentReference,
    ExternalPathRef,
    ExternalRef,
    LocalPathRef,
    LocalRef,
    PathReference,
    parse_reference,
)

from .local_store import LocalContentStore


class ReferenceValidator:
    """
    Confirm that a reference points at something that exists.

    Visibility is not checked here. Local references are looked up in the
    local store; external ones cost one catalog call.
    """

    def __init__(self, catalog: CatalogClient, store: LocalContentStore):
        self.catalog = catalog
        self.store = store

    def validate(self, reference: ContentReference) -> None:
        """
        Raises:
            NotFoundError: The owning store has no such object
            NetworkError: The catalog lookup failed
            InvalidReferenceError: ``reference`` is not a content reference
        """
        if isinstance(reference, LocalRef):
            if not self.store.object_exists(reference.object_id):
                raise NotFoundError(f"Local learning object {reference.object_id} not found")
        elif isinstance(reference, ExternalRef):
            # get_by_triple raises NotFound on an empty answer
            self.catalog.get_by_triple(reference.hruid, reference.language, reference.version)
        else:
            raise InvalidReferenceError(f"Unsupported content reference: {reference!r}")
        logger.debug(f"Validated {reference.describe()}")

    def validate_descriptor(
        self,
        is_external: bool,
        local_object_id: str | None = None,
        hruid: str | None = None,
        language: str | None = None,
        version: Any = None,
    ) -> ContentReference:
        """Parse a flat descriptor, validate it and return the reference."""
        reference = parse_reference(is_external, local_object_id, hruid, language, version)
        self.validate(reference)
        return reference

    def validate_path(self, reference: PathReference) -> None:
        """
        Confirm a learning path exists.

        Catalog paths have no version, so they are looked up by hruid and
        language through the path search.
        """
        if isinstance(reference, LocalPathRef):
            if not self.store.path_exists(reference.path_id):
                raise NotFoundError(f"Local learning path {reference.path_id} not found")
        elif isinstance(reference, ExternalPathRef):
            matches = self.catalog.search_paths(hruid=reference.hruid, language=reference.language)
            if not matches:
                raise NotFoundError(
                    f"Catalog path {reference.hruid} ({reference.language}) not found"
                )
        else:
            raise InvalidReferenceError(f"Unsupported path reference: {reference!r}")

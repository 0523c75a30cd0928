"""
HTTP client for the federated learning-object catalog.

The catalog is read-only and reachable only over its REST API:
- GET {metadata}?_id=...                          -> one object
- GET {metadata}?hruid=...&language=...&version=... -> one object
- GET {object_search}?...                          -> list of objects
- GET {path_search}?...                            -> list of paths (with nodes)

Every call is a single attempt bounded by a fixed timeout. Failures are
reported through the typed errors in ``pathengine.errors``: a 404 or an
empty body is NotFound, everything else is Network.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from config import CatalogConfig, Settings, get_settings
from pathengine.errors import NotFoundError, catalog_boundary

from .schemas import CatalogNode, CatalogObject, CatalogPath


class CatalogClient:
    """Thin accessor for catalog objects and paths."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        endpoints: CatalogConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the catalog client.

        Args:
            base_url: Catalog root URL (default from config)
            timeout: Per-call timeout budget in seconds (default from config)
            endpoints: Endpoint layout (default from config)
            transport: Optional httpx transport (tests inject a MockTransport)
            settings: Settings to read defaults from
        """
        settings = settings or get_settings()
        self.base_url = (base_url or settings.catalog_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.catalog_timeout_seconds
        self.endpoints = endpoints or settings.catalog
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"User-Agent": settings.catalog_user_agent, "Accept": "application/json"},
            transport=transport,
        )
        logger.debug("Initialized catalog client: url={}, timeout={}s", self.base_url, self.timeout)

    def __enter__(self) -> CatalogClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    # ========================================
    # Core request
    # ========================================

    def _get_json(self, endpoint: str, params: dict[str, Any]) -> Any:
        """
        Issue one GET and decode its JSON body.

        Raises:
            NotFoundError: On HTTP 404
            httpx.HTTPError / ValueError: Left for ``catalog_boundary`` to translate
        """
        logger.debug("Catalog request: endpoint={}, params={}", endpoint, params)
        response = self._client.get(endpoint, params=params)
        if response.status_code == 404:
            raise NotFoundError(f"Catalog has no match for {endpoint} {params}")
        response.raise_for_status()
        return response.json()

    # ========================================
    # Learning objects
    # ========================================

    def get_by_id(self, object_id: str) -> CatalogObject:
        """Fetch one catalog object by its catalog id."""
        with catalog_boundary(f"Catalog lookup of object {object_id} failed"):
            data = self._get_json(self.endpoints.object_metadata_endpoint, {"_id": object_id})
            if not data:
                raise NotFoundError(f"Catalog object {object_id} not found")
            return CatalogObject.model_validate(data)

    def get_by_triple(self, hruid: str, language: str, version: int) -> CatalogObject:
        """Fetch one catalog object by (hruid, language, version)."""
        label = f"hruid={hruid}, language={language}, version={version}"
        with catalog_boundary(f"Catalog lookup of object ({label}) failed"):
            data = self._get_json(
                self.endpoints.object_metadata_endpoint,
                {"hruid": hruid, "language": language, "version": version},
            )
            if not data:
                raise NotFoundError(f"Catalog object ({label}) not found")
            return CatalogObject.model_validate(data)

    def search_objects(
        self,
        search_term: str | None = None,
        visible_only: bool = False,
    ) -> list[CatalogObject]:
        """
        Search catalog objects.

        Args:
            search_term: Free-text term (omitted to list everything)
            visible_only: Ask the catalog to drop teacher-exclusive and
                unavailable objects
        """
        params: dict[str, Any] = {}
        if visible_only:
            params["teacher_exclusive"] = "false"
            params["available"] = "true"
        if search_term:
            params["searchTerm"] = search_term
        with catalog_boundary("Catalog object search failed"):
            data = self._get_json(self.endpoints.object_search_endpoint, params)
            return [CatalogObject.model_validate(item) for item in data or []]

    # ========================================
    # Learning paths
    # ========================================

    def search_paths(self, **filters: str | None) -> list[CatalogPath]:
        """Search catalog paths; ``all=""`` lists every path."""
        params = {k: v for k, v in filters.items() if v is not None}
        with catalog_boundary("Catalog path search failed"):
            data = self._get_json(self.endpoints.path_search_endpoint, params)
            return [CatalogPath.model_validate(item) for item in data or []]

    def get_path(self, id_or_hruid: str) -> CatalogPath | None:
        """
        Find one catalog path by catalog id or hruid.

        The catalog has no get-by-id for paths, so all paths are listed and
        filtered here. Returns None when nothing matches.
        """
        for path in self.search_paths(all=""):
            if path.id == id_or_hruid or path.hruid == id_or_hruid:
                return path
        return None

    def list_for_path_id(self, path_id: str) -> list[CatalogNode]:
        """
        Node descriptors of a catalog-hosted path.

        Raises:
            NotFoundError: If the catalog hosts no path with this id
            NetworkError: On any transport or payload failure
        """
        path = self.get_path(path_id)
        if path is None:
            raise NotFoundError(f"Catalog path {path_id} not found")
        logger.debug("Catalog path {} has {} nodes", path_id, len(path.nodes))
        return path.nodes

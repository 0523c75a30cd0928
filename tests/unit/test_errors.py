"""
Unit tests for typed failures and the catalog boundary.
"""

import httpx
import pytest
from pydantic import BaseModel

from pathengine.errors import (
    AccessDeniedError,
    InvalidRelationError,
    NetworkError,
    NotFoundError,
    PathEngineError,
    UnavailableError,
    catalog_boundary,
)


class _Payload(BaseModel):
    count: int


class TestErrorKinds:
    @pytest.mark.parametrize(
        "error_cls,kind",
        [
            (NotFoundError, "NotFound"),
            (AccessDeniedError, "AccessDenied"),
            (UnavailableError, "Unavailable"),
            (NetworkError, "Network"),
            (InvalidRelationError, "InvalidRelation"),
        ],
    )
    def test_kind(self, error_cls, kind):
        error = error_cls("message")
        assert isinstance(error, PathEngineError)
        assert error.kind == kind
        assert error.message == "message"


class TestCatalogBoundary:
    """Typed failures pass through; everything else becomes NetworkError."""

    @pytest.mark.parametrize("error_cls", [NotFoundError, AccessDeniedError, UnavailableError])
    def test_typed_failures_are_not_rewrapped(self, error_cls):
        original = error_cls("specific")
        with pytest.raises(error_cls) as exc:
            with catalog_boundary("lookup failed"):
                raise original
        assert exc.value is original

    def test_network_error_passes_through(self):
        original = NetworkError("already translated")
        with pytest.raises(NetworkError) as exc:
            with catalog_boundary("outer"):
                raise original
        assert exc.value is original

    def test_transport_error_becomes_network(self):
        request = httpx.Request("GET", "https://catalog.test")
        with pytest.raises(NetworkError) as exc:
            with catalog_boundary("lookup failed"):
                raise httpx.ConnectTimeout("timed out", request=request)
        assert exc.value.message == "lookup failed"
        assert isinstance(exc.value.__cause__, httpx.ConnectTimeout)

    def test_malformed_payload_becomes_network(self):
        with pytest.raises(NetworkError):
            with catalog_boundary("bad payload"):
                _Payload.model_validate({"count": "many"})

    def test_unrelated_errors_propagate(self):
        with pytest.raises(KeyError):
            with catalog_boundary("lookup failed"):
                raise KeyError("bug")

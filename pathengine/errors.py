"""
Typed failures raised by the content resolution and path composition core.

Every operation either returns a value or raises one of these. Callers
(HTTP layer, CLI) map the ``kind`` to a status code or exit message.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from loguru import logger
from pydantic import ValidationError


class PathEngineError(Exception):
    """Base class for all typed failures."""

    kind = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PathEngineError):
    """Reference, node, path, team or assignment is absent."""

    kind = "NotFound"


class AccessDeniedError(PathEngineError):
    """Teacher-exclusive content requested by a non-teacher."""

    kind = "AccessDenied"


class UnavailableError(PathEngineError):
    """Content is marked as (temporarily) unavailable."""

    kind = "Unavailable"


class NetworkError(PathEngineError):
    """Catalog unreachable, timed out, or answered with a malformed payload."""

    kind = "Network"


class InvalidRelationError(PathEngineError):
    """A node (or question party) does not belong to the addressed parent."""

    kind = "InvalidRelation"


class InvalidReferenceError(PathEngineError):
    """Malformed or incomplete reference descriptor."""

    kind = "InvalidReference"


# Failures the catalog boundary must never re-wrap as network errors.
PASSTHROUGH_ERRORS = (NotFoundError, AccessDeniedError, UnavailableError)


@contextmanager
def catalog_boundary(message: str) -> Iterator[None]:
    """
    Translate failures around a catalog call.

    Typed failures raised inside the block (NotFound, AccessDenied,
    Unavailable) are re-raised unchanged. Transport errors, HTTP status
    errors and malformed payloads become a single NetworkError.
    """
    try:
        yield
    except PASSTHROUGH_ERRORS:
        raise
    except NetworkError:
        raise
    except (httpx.HTTPError, ValidationError, ValueError) as e:
        logger.warning(f"{message}: {e}")
        raise NetworkError(message) from e

"""
Content and path references.

A content reference names exactly one learning object in exactly one
store: either a locally authored object (by id) or a catalog object (by
its hruid/language/version triple). The two variants are separate
classes, so a reference can never carry both sets of fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .errors import InvalidReferenceError


@dataclass(frozen=True)
class LocalRef:
    """Reference to a learning object owned by the local content store."""

    object_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.object_id, str) or not self.object_id.strip():
            raise InvalidReferenceError("Local reference requires a non-empty object id")

    @property
    def is_external(self) -> bool:
        return False

    def describe(self) -> str:
        return f"local:{self.object_id}"


@dataclass(frozen=True)
class ExternalRef:
    """Reference to a catalog learning object by (hruid, language, version)."""

    hruid: str
    language: str
    version: int

    def __post_init__(self) -> None:
        missing = [
            name
            for name, value in (("hruid", self.hruid), ("language", self.language))
            if not isinstance(value, str) or not value.strip()
        ]
        # bool is an int subclass but never a valid version
        if isinstance(self.version, bool) or not isinstance(self.version, int):
            missing.append("version")
        if missing:
            raise InvalidReferenceError(
                f"External reference is missing or has invalid fields: {', '.join(missing)}"
            )

    @property
    def is_external(self) -> bool:
        return True

    def describe(self) -> str:
        return f"external:{self.hruid}/{self.language}/v{self.version}"


ContentReference = Union[LocalRef, ExternalRef]


@dataclass(frozen=True)
class LocalPathRef:
    """Reference to a locally authored learning path."""

    path_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.path_id, str) or not self.path_id.strip():
            raise InvalidReferenceError("Local path reference requires a non-empty path id")

    @property
    def is_external(self) -> bool:
        return False


@dataclass(frozen=True)
class ExternalPathRef:
    """Reference to a catalog learning path (paths carry no version)."""

    hruid: str
    language: str

    def __post_init__(self) -> None:
        missing = [
            name
            for name, value in (("hruid", self.hruid), ("language", self.language))
            if not isinstance(value, str) or not value.strip()
        ]
        if missing:
            raise InvalidReferenceError(
                f"External path reference is missing or has invalid fields: {', '.join(missing)}"
            )

    @property
    def is_external(self) -> bool:
        return True


PathReference = Union[LocalPathRef, ExternalPathRef]


def parse_reference(
    is_external: bool,
    local_object_id: str | None = None,
    hruid: str | None = None,
    language: str | None = None,
    version: Any = None,
) -> ContentReference:
    """
    Build a content reference from a flat descriptor.

    Flat descriptors come from request bodies where both field sets are
    optional. Fields belonging to the other variant must be absent.

    Raises:
        InvalidReferenceError: On missing, malformed, or mixed fields.
    """
    if is_external:
        if local_object_id is not None:
            raise InvalidReferenceError("External reference must not carry a local object id")
        return ExternalRef(hruid=hruid, language=language, version=version)  # type: ignore[arg-type]

    if hruid is not None or language is not None or version is not None:
        raise InvalidReferenceError("Local reference must not carry catalog fields")
    return LocalRef(object_id=local_object_id)  # type: ignore[arg-type]


def parse_path_reference(
    is_external: bool,
    path_ref: str | None,
    language: str | None = None,
) -> PathReference:
    """Build a path reference; for external paths ``path_ref`` is the hruid."""
    if is_external:
        return ExternalPathRef(hruid=path_ref or "", language=language or "")
    return LocalPathRef(path_id=path_ref or "")

"""Declarative base shared by all models."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    """Primary key for string-keyed rows (objects, paths, nodes)."""
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

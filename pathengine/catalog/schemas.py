"""
Catalog payload models.

The catalog speaks snake_case with Mongo-style ``_id`` keys; these models
accept that shape and expose plain attribute names. Missing fields fall
back to the catalog's documented defaults (an object without an explicit
``available`` flag is treated as unavailable).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatalogObject(BaseModel):
    """Learning-object metadata as returned by the catalog."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="_id")
    uuid: str = ""
    hruid: str = ""
    version: int = 1
    language: str = ""
    title: str = ""
    description: str = ""
    content_type: str = "text/plain"
    keywords: list[str] = Field(default_factory=list)
    target_ages: list[int] = Field(default_factory=list)
    teacher_exclusive: bool = False
    skos_concepts: list[str] = Field(default_factory=list)
    copyright: str = ""
    licence: str = ""
    difficulty: int = 0
    estimated_time: int = 0
    available: bool = False
    content_location: str = ""
    created_at: str = ""
    updated_at: str = Field(default="", alias="updatedAt")


class CatalogNode(BaseModel):
    """Node descriptor of a catalog-hosted learning path."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hruid: str = Field(alias="learningobject_hruid")
    language: str
    version: int
    start_node: bool = False


class CatalogPath(BaseModel):
    """Learning path hosted by the catalog (read-only for this engine)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="_id")
    hruid: str = ""
    language: str = ""
    title: str = ""
    description: str = ""
    image: str | None = None
    num_nodes: int = 0
    nodes: list[CatalogNode] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = Field(default="", alias="updatedAt")

"""
Engine context.

Carries the settings, database session factory, catalog client and team
directory into every component. Components are built lazily from those
handles, so tests can swap any of them before first use.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property

import httpx
from loguru import logger
from sqlalchemy import Engine

from config import Settings, get_settings
from pathengine.catalog import CatalogClient
from pathengine.content import ContentResolver, LocalContentStore, ReferenceValidator
from pathengine.db.database import SessionFactory, create_session_factory, engine_from_settings
from pathengine.paths import PathNodeManager
from pathengine.progress import (
    ProgressAggregator,
    ProgressTracker,
    SqlTeamDirectory,
    TeamDirectory,
)
from pathengine.questions import QuestionService


@dataclass
class EngineContext:
    settings: Settings
    session_factory: SessionFactory
    catalog: CatalogClient
    directory: TeamDirectory
    engine: Engine | None = field(default=None, repr=False)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> EngineContext:
        """Build a context from settings (database engine, catalog client, directory)."""
        settings = settings or get_settings()
        if not settings.has_catalog_configured():
            logger.warning("No catalog base URL configured; catalog lookups will fail")
        engine = engine_from_settings(settings)
        factory = create_session_factory(engine)
        catalog = CatalogClient(settings=settings, transport=transport)
        logger.debug(f"Engine context ready: catalog={settings.catalog_base_url}")
        return cls(
            settings=settings,
            session_factory=factory,
            catalog=catalog,
            directory=SqlTeamDirectory(factory),
            engine=engine,
        )

    # ========================================
    # Components
    # ========================================

    @cached_property
    def store(self) -> LocalContentStore:
        return LocalContentStore(self.session_factory, self.settings)

    @cached_property
    def validator(self) -> ReferenceValidator:
        return ReferenceValidator(self.catalog, self.store)

    @cached_property
    def nodes(self) -> PathNodeManager:
        return PathNodeManager(self.session_factory, self.validator)

    @cached_property
    def resolver(self) -> ContentResolver:
        return ContentResolver(self.catalog, self.store, self.nodes)

    @cached_property
    def progress(self) -> ProgressTracker:
        return ProgressTracker(self.session_factory)

    @cached_property
    def aggregator(self) -> ProgressAggregator:
        return ProgressAggregator(self.nodes, self.progress, self.directory)

    @cached_property
    def questions(self) -> QuestionService:
        return QuestionService(self.session_factory, self.validator, self.directory)

    def close(self) -> None:
        """Close the catalog client and dispose the database engine."""
        self.catalog.close()
        if self.engine is not None:
            self.engine.dispose()

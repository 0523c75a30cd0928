"""
Unit tests for building an engine context from settings.
"""

import httpx

from pathengine.context import EngineContext
from pathengine.db import init_db


class TestEngineContext:
    def test_from_settings(self, settings, fake_catalog):
        context = EngineContext.from_settings(
            settings, transport=httpx.MockTransport(fake_catalog.handler)
        )
        try:
            init_db(context.engine)
            path = context.store.create_path("From settings")

            assert context.nodes is context.nodes
            assert context.resolver.find_path(path.id) == path
            assert context.catalog.base_url == settings.catalog_base_url
        finally:
            context.close()

    def test_components_share_handles(self, context):
        assert context.validator.store is context.store
        assert context.resolver.nodes is context.nodes
        assert context.aggregator.directory is context.directory

"""
Integration tests on a SQLite file database.

Node mutators run from many threads at once; the cached node count must
match the actual rows once they all commit.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from pathengine.context import EngineContext
from pathengine.db import create_db_engine, create_session_factory, init_db, validate_node_counts
from pathengine.progress import SqlTeamDirectory
from pathengine.references import ExternalRef, LocalRef


@pytest.fixture
def file_context(tmp_path, settings, catalog_client):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'paths.db'}")
    init_db(engine)
    factory = create_session_factory(engine)
    context = EngineContext(
        settings=settings,
        session_factory=factory,
        catalog=catalog_client,
        directory=SqlTeamDirectory(factory),
        engine=engine,
    )
    yield context
    engine.dispose()


class TestConcurrentNodeMutation:
    @pytest.mark.slow
    def test_concurrent_creates_and_deletes(self, file_context):
        store, nodes = file_context.store, file_context.nodes
        path = store.create_path("Concurrent")
        objects = [store.create_object(f"Object {i}", available=True) for i in range(4)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            created = list(pool.map(
                lambda i: nodes.create_node(path.id, LocalRef(objects[i % 4].id)),
                range(24),
            ))
        assert store.get_path(path.id).num_nodes == 24

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda node: nodes.delete_node(path.id, node.node_id), created[:10]))

        assert store.get_path(path.id).num_nodes == 14
        assert len(nodes.list_nodes(path.id)) == 14
        assert validate_node_counts(file_context.engine)["valid"]

    def test_paths_are_independent(self, file_context):
        store, nodes = file_context.store, file_context.nodes
        paths = [store.create_path(f"Path {i}") for i in range(3)]
        obj = store.create_object("Shared", available=True)

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(
                lambda i: nodes.create_node(paths[i % 3].id, LocalRef(obj.id)),
                range(12),
            ))

        assert [store.get_path(p.id).num_nodes for p in paths] == [4, 4, 4]


class TestCompositionFlow:
    """Author a path, attach mixed nodes, track progress, clean up."""

    def test_end_to_end(self, file_context):
        ctx = file_context
        path = ctx.store.create_path("Mixed path")
        a, b, c = (ctx.store.create_object(name, available=True) for name in ("A", "B", "C"))
        for obj in (a, b, c):
            ctx.nodes.create_node(path.id, LocalRef(obj.id))
        ctx.nodes.create_node(path.id, ExternalRef("pn_werking", "nl", 3))

        for obj in (a, b):
            ctx.progress.start(11, obj.id)
            ctx.progress.mark_done(11, obj.id)

        assert ctx.aggregator.student_path_progress(11, path.id) == pytest.approx(50.0)
        assert [r.title for r in ctx.resolver.resolve_path_objects(path.id, False)] == [
            "A", "B", "C", "Pn Werking",
        ]

        ctx.store.delete_object(c.id)

        assert ctx.store.get_path(path.id).num_nodes == 3
        assert ctx.aggregator.student_path_progress(11, path.id) == pytest.approx(200 / 3)
        assert validate_node_counts(ctx.engine)["valid"]

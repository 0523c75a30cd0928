"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
an in-memory SQLite content store, a fake catalog served through
``httpx.MockTransport`` and an ``EngineContext`` wired to both.
"""
import sys
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from pathengine.catalog import CatalogClient  # noqa: E402
from pathengine.context import EngineContext  # noqa: E402
from pathengine.db import create_db_engine, create_session_factory, init_db  # noqa: E402
from pathengine.db.database import session_scope  # noqa: E402
from pathengine.db.models import Assignment, Team, TeamAssignment, TeamMember  # noqa: E402
from pathengine.progress import SqlTeamDirectory  # noqa: E402

CATALOG_URL = "https://catalog.test/backend"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (file database, threads)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Fake catalog
# ========================================


def catalog_object(hruid, version=1, language="nl", **overrides):
    """Catalog payload for one learning object (available unless overridden)."""
    payload = {
        "_id": f"cat-{hruid}-{version}",
        "uuid": f"uuid-{hruid}",
        "hruid": hruid,
        "version": version,
        "language": language,
        "title": hruid.replace("_", " ").title(),
        "description": f"Catalog object {hruid}",
        "content_type": "text/markdown",
        "keywords": ["catalog"],
        "target_ages": [12, 13],
        "teacher_exclusive": False,
        "available": True,
        "licence": "CC BY Dwengo",
    }
    payload.update(overrides)
    return payload


class FakeCatalog:
    """In-memory catalog answering the client's REST calls."""

    def __init__(self):
        self.objects = []
        self.paths = []
        self.requests = []
        self.fail_with = None  # None, an HTTP status code, or "connect"
        self.malformed = False

    def add_object(self, hruid, version=1, language="nl", **overrides):
        payload = catalog_object(hruid, version, language, **overrides)
        self.objects.append(payload)
        return payload

    def add_path(self, path_id, hruid, nodes, language="nl", title="Catalog path"):
        payload = {
            "_id": path_id,
            "hruid": hruid,
            "language": language,
            "title": title,
            "description": "",
            "num_nodes": len(nodes),
            "nodes": [
                {
                    "learningobject_hruid": h,
                    "language": language,
                    "version": v,
                    "start_node": i == 0,
                }
                for i, (h, v) in enumerate(nodes)
            ],
        }
        self.paths.append(payload)
        return payload

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with == "connect":
            raise httpx.ConnectError("catalog unreachable", request=request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": "boom"})
        if self.malformed:
            return httpx.Response(200, content=b"<html>not json</html>")

        params = {k: v[0] for k, v in parse_qs(request.url.query.decode(), keep_blank_values=True).items()}
        path = request.url.path
        if path.endswith("/learningObject/getMetadata"):
            return self._metadata(params)
        if path.endswith("/learningObject/search"):
            return httpx.Response(200, json=self._search_objects(params))
        if path.endswith("/learningPath/search"):
            return httpx.Response(200, json=self._search_paths(params))
        return httpx.Response(404)

    def _metadata(self, params):
        for obj in self.objects:
            if "_id" in params and obj["_id"] == params["_id"]:
                return httpx.Response(200, json=obj)
            if (
                obj["hruid"] == params.get("hruid")
                and obj["language"] == params.get("language")
                and str(obj["version"]) == params.get("version")
            ):
                return httpx.Response(200, json=obj)
        return httpx.Response(404, json={"error": "not found"})

    def _search_objects(self, params):
        results = list(self.objects)
        if params.get("teacher_exclusive") == "false":
            results = [o for o in results if not o["teacher_exclusive"]]
        if params.get("available") == "true":
            results = [o for o in results if o["available"]]
        term = params.get("searchTerm")
        if term:
            results = [o for o in results if term.lower() in o["title"].lower()]
        return results

    def _search_paths(self, params):
        if "all" in params:
            return list(self.paths)
        results = list(self.paths)
        for key in ("hruid", "language"):
            if key in params:
                results = [p for p in results if p[key] == params[key]]
        if "title" in params:
            results = [p for p in results if params["title"].lower() in p["title"].lower()]
        return results


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings isolated from any .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        catalog_base_url=CATALOG_URL,
        catalog_timeout_seconds=2.0,
    )


@pytest.fixture
def db_engine(settings):
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def fake_catalog():
    """Catalog with visible, teacher-only and unavailable objects plus one path."""
    catalog = FakeCatalog()
    catalog.add_object("pn_werking", version=3)
    catalog.add_object("pn_docent", teacher_exclusive=True)
    catalog.add_object("pn_offline", available=False)
    catalog.add_path(
        "cat-path-1",
        "pn_basis",
        [("pn_werking", 3), ("pn_docent", 1), ("pn_offline", 1), ("pn_verdwenen", 1)],
        title="Basis programmeren",
    )
    return catalog


@pytest.fixture
def catalog_client(settings, fake_catalog):
    client = CatalogClient(settings=settings, transport=httpx.MockTransport(fake_catalog.handler))
    yield client
    client.close()


@pytest.fixture
def context(settings, db_engine, session_factory, catalog_client):
    """Engine context over the in-memory store and the fake catalog."""
    return EngineContext(
        settings=settings,
        session_factory=session_factory,
        catalog=catalog_client,
        directory=SqlTeamDirectory(session_factory),
        engine=db_engine,
    )


@pytest.fixture
def local_path(context):
    """An empty local learning path."""
    return context.store.create_path("Python basics", language="nl", creator_id=1)


@pytest.fixture
def make_object(context):
    """Factory for local learning objects."""

    def _make(title="Variables", **fields):
        fields.setdefault("available", True)
        return context.store.create_object(title, creator_id=1, **fields)

    return _make


@pytest.fixture
def make_team(session_factory):
    """Factory creating a team with members, optionally bound to an assignment."""

    def _make(student_ids, assignment_id=None, name="Team"):
        with session_scope(session_factory) as session:
            team = Team(name=name, class_id=1)
            team.members = [TeamMember(student_id=s) for s in student_ids]
            session.add(team)
            session.flush()
            if assignment_id is not None:
                session.add(TeamAssignment(team_id=team.id, assignment_id=assignment_id))
            return team.id

    return _make


@pytest.fixture
def make_assignment(session_factory):
    def _make(path_id, is_external=False, title="Assignment"):
        with session_scope(session_factory) as session:
            assignment = Assignment(learning_path_id=path_id, is_external=is_external, title=title)
            session.add(assignment)
            session.flush()
            return assignment.id

    return _make

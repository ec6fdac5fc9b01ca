"""Shared pytest fixtures for the riwayati test suite."""

import httpx
import pytest
from fastapi.testclient import TestClient

from riwayati import db as store
from riwayati.main import create_app


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db_path(tmp_path):
    """Return a temporary SQLite database path."""
    return str(tmp_path / "test_novels.db")


@pytest.fixture
def conn(db_path):
    """Return an initialized connection backed by a temp file."""
    connection = store.connect(db_path)
    store.init_db(connection)
    yield connection
    connection.close()


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def app(db_path):
    return create_app(db_path)


@pytest.fixture
def client(app):
    """A TestClient with the lifespan (schema creation) already run."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def http(app, conn):
    """An AsyncClient talking to the app in-process.

    ``ASGITransport`` does not run the lifespan, so the ``conn`` fixture
    creates the schema instead.
    """
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


# ---------------------------------------------------------------------------
# Generation fakes
# ---------------------------------------------------------------------------

class FakeGenerator:
    """Stands in for a text provider and records every prompt it receives."""

    name = "fake"

    def __init__(self, text="فصل كامل مولّد", error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def generator():
    return FakeGenerator()


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_novel():
    """An in-memory novel as returned by the detail endpoint."""
    return {
        "id": 7,
        "title": "رحلة في أعماق النجوم",
        "author": "سارة",
        "description": "قصة عن السفر بين الكواكب",
        "created_at": "2024-01-01 10:00:00",
        "chapters": [
            {"id": 3, "novel_id": 7, "title": "الفصل الثالث", "content": "النهاية", "order_index": 5,
             "created_at": "2024-01-01 10:03:00"},
            {"id": 1, "novel_id": 7, "title": "الفصل الأول", "content": "البداية\nسطر ثان", "order_index": 1,
             "created_at": "2024-01-01 10:01:00"},
            {"id": 2, "novel_id": 7, "title": "الفصل الثاني", "content": "الوسط", "order_index": 2,
             "created_at": "2024-01-01 10:02:00"},
        ],
    }


@pytest.fixture
def make_generator():
    """Build a FakeGenerator with a custom reply or error."""
    return FakeGenerator

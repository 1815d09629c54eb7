"""Pytest session setup for backend test runs.

Points the app at a throwaway SQLite database before any `app` module is
imported, so importing `app.main` never needs a reachable Postgres.
"""
import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")
os.environ.pop("REDIS_URL", None)

from app.core.config import settings


@pytest.fixture(scope="session", autouse=True)
def force_testing_mode():
    """Force TESTING=True early in the test session so imports can read it."""
    settings.TESTING = True


def pytest_collection_modifyitems(items):
    """Treat legacy pytest.mark.asyncio as anyio-compatible so tests run under the anyio plugin."""
    for item in items:
        if 'asyncio' in getattr(item, 'keywords', {}):
            item.add_marker(pytest.mark.anyio)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"

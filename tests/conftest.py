"""Shared test fixtures and configuration."""
import os

# Settings are read lazily, but some modules touch them on first use.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402

from rbac_console.config import Settings  # noqa: E402
from rbac_console.database import Database  # noqa: E402


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "database_url": "sqlite+aiosqlite:///:memory:",
        "secret_key": "test-secret-key",
        "gemini_api_key": "test-gemini-key",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def database(anyio_backend, app_settings):
    db = Database.from_settings(app_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.sessionmaker() as db_session:
        yield db_session


@pytest.fixture
def app_settings() -> Settings:
    return make_settings()

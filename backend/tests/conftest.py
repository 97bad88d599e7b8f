# tests/conftest.py — Shared test fixtures
import os

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine

# Tests run against the SQL record store on SQLite
os.environ["RECORD_STORE_BACKEND"] = "sql"
os.environ["ENVIRONMENT"] = "test"

from database import create_session_maker
from models import Base
from notifications import NotificationCenter
from routers.common import get_registry
from schemas import SCHEMAS_BY_TABLE
from services import ServiceRegistry
from sql_record_store import SqlRecordStore
from main import app


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def store(db_engine):
    """SQL record store validating writes against every table schema"""
    return SqlRecordStore(create_session_maker(db_engine), SCHEMAS_BY_TABLE)


@pytest.fixture
def notifier():
    return NotificationCenter()


@pytest_asyncio.fixture(scope="function")
async def registry(store, notifier):
    return ServiceRegistry(store, notifier)


@pytest_asyncio.fixture(scope="function")
async def client(registry):
    """HTTP test client with the registry dependency overridden"""
    app.dependency_overrides[get_registry] = lambda: registry
    app.state.registry = registry
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    del app.state.registry

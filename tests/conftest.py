"""
Root test configuration.

Sets up:
- A fresh SQLite database file per test (sqlite+aiosqlite, foreign keys on),
  or TEST_DATABASE_URL when set (e.g. a throwaway PostgreSQL database)
- Storage gateway bound to that database
- AsyncClient for FastAPI testing
- Lifespan is skipped in tests (no init_db against the default database)
"""
import os

# Set env vars before any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mower_manager.api.v1.router import api_router
from mower_manager.db.database import create_engine_for, create_session_factory, drop_db, init_db
from mower_manager.repositories.storage import Storage, get_storage
from mower_manager.services.maintenance import maintenance
from mower_manager.services.websocket_service import manager
from tests.factories import (
    make_asset_part,
    make_attachment,
    make_component,
    make_mower,
    make_part,
    make_service_record,
    make_task,
)


def _create_test_app() -> FastAPI:
    """Create a FastAPI app for testing WITHOUT lifespan (no init_db)."""

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        # No-op lifespan for tests - tables are managed by fixtures
        yield

    app = FastAPI(
        title="Mower Manager API",
        version="1.3.4",
        lifespan=test_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


@pytest_asyncio.fixture()
async def engine(tmp_path):
    """Provide an engine with fresh tables per test.

    Creates a new engine per test to avoid event loop conflicts
    with pytest-asyncio's per-test event loop.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_engine_for(url)

    await init_db(test_engine)
    try:
        yield test_engine
    finally:
        await drop_db(test_engine)
        await test_engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for seeding rows directly. Commit after adding."""
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def storage(session_factory):
    return Storage(session_factory)


@pytest.fixture(autouse=True)
def _reset_process_state():
    """Maintenance mode and WebSocket clients are process-wide."""
    maintenance.operation = None
    manager.clients.clear()
    yield
    maintenance.operation = None
    manager.clients.clear()


@pytest_asyncio.fixture()
async def app(storage: Storage):
    """Create a test FastAPI app with the storage gateway overridden."""
    application = _create_test_app()
    application.dependency_overrides[get_storage] = lambda: storage
    return application


@pytest_asyncio.fixture()
async def client(app):
    """Provide an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture()
async def fleet(db_session):
    """A small dataset touching every table.

    2 mowers, 1 component, 1 part, 1 task, 1 service record,
    3 attachments (one per owner type) and 1 asset part: 10 records.
    """
    toro = make_mower(make="Toro", model="TimeCutter", serial_number="TC-001")
    deere = make_mower(make="John Deere", model="X350")
    db_session.add_all([toro, deere])
    await db_session.commit()

    engine_component = make_component(mower_id=toro.id, name="Kohler 7000")
    belt = make_part(name="Deck Belt", part_number="BLT-42")
    db_session.add_all([engine_component, belt])
    await db_session.commit()

    task = make_task(mower_id=toro.id, title="Sharpen blades")
    service = make_service_record(mower_id=toro.id, service_type="maintenance")
    db_session.add_all([task, service])
    await db_session.commit()

    manual = make_attachment(mower_id=toro.id, file_name="manual.pdf", file_data=b"%PDF-1.4 manual")
    photo = make_attachment(
        component_id=engine_component.id,
        file_name="engine.jpg",
        file_type="image",
        file_data=b"\xff\xd8\xff\xe0 jpeg bytes",
    )
    receipt = make_attachment(part_id=belt.id, file_name="receipt.pdf", file_data=b"%PDF-1.4 receipt")
    allocation = make_asset_part(part_id=belt.id, mower_id=toro.id, service_record_id=service.id)
    db_session.add_all([manual, photo, receipt, allocation])
    await db_session.commit()

    return {
        "mowers": [toro, deere],
        "components": [engine_component],
        "parts": [belt],
        "tasks": [task],
        "service_records": [service],
        "attachments": [manual, photo, receipt],
        "asset_parts": [allocation],
    }

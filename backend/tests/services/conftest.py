"""Service test fixtures: async DB, seeded catalog, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness probe sees the test engine
    - seeded_catalog returns plain ids, never ORM instances (services roll back,
      which expires instances; async sessions cannot lazy-load them again)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for service tests
      (row locks are a no-op there; races are simulated at the repository seam)
    - Fixed clock and seeded RNG for protocol assertions
"""

import random

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from praxis.config import get_settings
from praxis.db.base import Base
from praxis.infrastructure.business_tables import build_business_tables
from praxis.infrastructure.database import get_db, DatabaseSessionManager
from praxis.infrastructure.repositories import SqlProtocolRegistry
from praxis.services.order_service import OrderService
from praxis.services.protocol_generator import ProtocolGenerator
from praxis.services.ticket_service import TicketService
import praxis.infrastructure.database as db_module
from praxis.main import app

from tests.services.catalog_seed import (
    SeededCatalog, SeededProducts, seed_catalog, seed_products,
)
from tests.services.fake_clock import fixed_clock


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def tables():
    return build_business_tables(get_settings())


@pytest.fixture
def company_id():
    return get_settings().company_id


@pytest.fixture
def order_service(test_db, tables, company_id):
    protocols = ProtocolGenerator(
        SqlProtocolRegistry(test_db), fixed_clock, random.Random(7),
    )
    return OrderService(test_db, tables, company_id, fixed_clock, protocols)


@pytest.fixture
def ticket_service(test_db, company_id):
    protocols = ProtocolGenerator(
        SqlProtocolRegistry(test_db), fixed_clock, random.Random(11),
    )
    return TicketService(test_db, company_id, fixed_clock, protocols)


@pytest.fixture
async def seeded_catalog(test_db) -> SeededCatalog:
    return await seed_catalog(test_db)


@pytest.fixture
async def seeded_products(test_db, company_id) -> SeededProducts:
    return await seed_products(test_db, company_id)


@pytest.fixture
def address():
    return {
        "recipient": "Anna Berger",
        "street": "Mariahilfer Strasse 1",
        "city": "Wien",
        "postal_code": "1060",
        "country": "AT",
    }

"""
Shared fixtures: a fresh in-memory SQLite database per test.
"""
import os

# Set test environment before anything imports bookstore.core.config
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from bookstore.core.database import build_engine, init_models
from bookstore.services import CatalogService, UserService

SHIPPING_ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zipCode": "62701",
    "country": "US",
}


@pytest_asyncio.fixture
async def engine():
    """Async engine on a private in-memory database with foreign keys on."""
    test_engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture
def make_user(db):
    """Factory creating users with unique emails."""
    counter = {"n": 0}

    async def _make_user(**overrides):
        counter["n"] += 1
        fields = {
            "name": f"Reader {counter['n']}",
            "email": f"reader{counter['n']}@example.com",
            "password": "correct horse battery",
        }
        fields.update(overrides)
        return await UserService(db).create_user(**fields)

    return _make_user


@pytest.fixture
def make_product(db):
    """Factory creating in-stock products."""
    counter = {"n": 0}

    async def _make_product(**overrides):
        counter["n"] += 1
        fields = {
            "title": f"Book {counter['n']}",
            "author": "Some Author",
            "description": "A book.",
            "price": "10.00",
            "stock": 10,
        }
        fields.update(overrides)
        return await CatalogService(db).create_product(**fields)

    return _make_product


@pytest_asyncio.fixture
async def user(make_user):
    return await make_user()


@pytest_asyncio.fixture
async def product(make_product):
    return await make_product()

"""Shared fixtures: a throwaway SQLite database and upload dir per test."""

import os

# Must be set before the app (and its settings) is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from app.core.database import Base, get_db
from app.main import app
from app.models.product import Product
from app.services.image_storage import ImageStorage, get_image_storage


@pytest.fixture
def database_path(tmp_path):
    """SQLite file with the schema already created."""
    path = tmp_path / "products.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def sync_engine(database_path):
    """Synchronous engine for seeding and inspecting rows directly."""
    engine = create_engine(f"sqlite:///{database_path}")
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(database_path):
    # NullPool: every session opens its own connection on the running loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def storage(upload_dir):
    return ImageStorage(upload_dir=upload_dir)


@pytest.fixture
def client(session_factory, storage):
    """TestClient wired to the per-test database and upload dir."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_image_storage] = lambda: storage

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def insert_product(sync_engine):
    """Insert a row directly, bypassing the service rules."""

    def _insert(**fields) -> str:
        with Session(sync_engine) as session:
            product = Product(**fields)
            session.add(product)
            session.commit()
            return product.id

    return _insert


@pytest.fixture
def count_products(sync_engine):
    def _count(**filters) -> int:
        with Session(sync_engine) as session:
            return session.query(Product).filter_by(**filters).count()

    return _count


@pytest.fixture
def fetch_product(sync_engine):
    def _fetch(product_id: str):
        with Session(sync_engine, expire_on_commit=False) as session:
            return session.get(Product, product_id)

    return _fetch

"""
Shared fixtures: in-memory database, object store, AI client and users.
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="heartcart-storage-"))

from collections.abc import AsyncGenerator
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from heartcart.core.database import Base, get_db_session
from heartcart.main import app
from heartcart.models import Category, Product, Supplier, User, UserRole
from heartcart.services.auth import AuthService, issue_token
from heartcart.services.llm_client import LLMClient, get_llm_client
from heartcart.services.object_store import LocalStorageBackend, ObjectStore, get_object_store


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy drive transactions so SAVEPOINTs work
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(tmp_path) -> ObjectStore:
    return ObjectStore(LocalStorageBackend(tmp_path / "storage"), public_prefix="/api/files")


@pytest.fixture
def llm() -> MagicMock:
    """LLM client whose completions are set per test."""
    client = MagicMock(spec=LLMClient)
    client.is_configured = True
    client.providers = []
    client.chat_completion = AsyncMock(return_value={"content": ""})
    return client


@pytest.fixture
async def async_client(session_factory, store, llm) -> AsyncGenerator[AsyncClient, None]:
    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_llm_client] = lambda: llm

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    """Synchronous client for routes that never touch the database."""
    return TestClient(app)


async def _make_user(session_factory, username: str, role: UserRole) -> User:
    async with session_factory() as session:
        user = await AuthService(session).register(
            username=username,
            email=f"{username}@example.com",
            password="password123",
            role=role,
        )
        await session.commit()
        return user


def _headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
async def user(session_factory) -> User:
    return await _make_user(session_factory, "shopper", UserRole.USER)


@pytest.fixture
async def other_user(session_factory) -> User:
    return await _make_user(session_factory, "someone", UserRole.USER)


@pytest.fixture
async def admin(session_factory) -> User:
    return await _make_user(session_factory, "admin", UserRole.ADMIN)


@pytest.fixture
def user_headers(user) -> dict[str, str]:
    return _headers(user)


@pytest.fixture
def other_headers(other_user) -> dict[str, str]:
    return _headers(other_user)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return _headers(admin)


@pytest.fixture
async def supplier(session_factory) -> Supplier:
    async with session_factory() as session:
        supplier = Supplier(name="Cape Imports", country="South Africa")
        session.add(supplier)
        await session.commit()
        return supplier


@pytest.fixture
def make_product(session_factory, supplier):
    """Insert a live product directly; keyword arguments override defaults."""
    counter = {"n": 0}

    async def _make(**overrides: Any) -> Product:
        counter["n"] += 1
        n = counter["n"]
        data: dict[str, Any] = {
            "name": f"Product {n}",
            "slug": f"product-{n}",
            "sku": f"SKU-{n}",
            "supplier_id": supplier.id,
            "price": Decimal("100.00"),
            "cost_price": Decimal("60.00"),
            "stock": 10,
            "minimum_order": 1,
            "is_active": True,
        }
        data.update(overrides)
        async with session_factory() as session:
            product = Product(**data)
            session.add(product)
            await session.commit()
            return product

    return _make


@pytest.fixture
async def category(session_factory) -> Category:
    async with session_factory() as session:
        category = Category(name="Home", slug="home", level=0)
        session.add(category)
        await session.commit()
        return category


@pytest.fixture
def draft_payload(supplier, category) -> dict[str, Any]:
    """Draft body that passes every validation rule except images."""
    return {
        "name": "Rattan Pendant Lamp",
        "description": "Hand woven rattan shade.",
        "categoryId": str(category.id),
        "supplierId": str(supplier.id),
        "costPrice": "60.00",
        "regularPrice": "100.00",
        "stockLevel": 5,
        "tags": ["lighting", "rattan"],
    }

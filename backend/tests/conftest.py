"""Pytest fixtures for the Airtable mirror backend tests."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from airmirror.config import Settings
from airmirror.database import Base, get_db
from airmirror.dependencies import get_airtable_client, get_leaderboard_client
from airmirror.main import app
from airmirror.schemas.airtable import AirtableField, AirtableRecord, AirtableTable
from airmirror.services.airtable_client import AirtableClient
from airmirror.services.leaderboard_client import LeaderboardClient


# Test database URL - SQLite keeps tests isolated from Postgres
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        airtable_pat="test_token",
        airtable_base_id="appTEST",
        webhook_secret="s3cret",
        debug=True,
    )


@pytest_asyncio.fixture
async def async_engine():
    """Create async engine for testing."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session with the metadata table in place."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def create_mirror_table(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[None]]:
    """
    Factory creating a mirrored table the way an operator would from the
    generated DDL (simplified for SQLite: no uuid, jsonb or arrays).
    """

    async def _create(name: str, columns: dict[str, str] | None = None) -> None:
        extra = "".join(f",\n    {col} {sql_type}" for col, sql_type in (columns or {}).items())
        await db_session.execute(text(f"""
            CREATE TABLE {name} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                airtable_id TEXT UNIQUE NOT NULL,
                raw_json JSON NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP,
                deleted BOOLEAN NOT NULL DEFAULT 0{extra}
            )
        """))
        await db_session.commit()

    return _create


ORDERS_COLUMNS = {
    "name": "TEXT",
    "amount": "NUMERIC",
    "paid": "BOOLEAN",
    "order_date": "TIMESTAMP",
    "tags": "JSON",
    "files": "JSON",
    "airtable_field_id": "TEXT",
}


@pytest_asyncio.fixture
async def orders_table(create_mirror_table) -> str:
    """Mirrored table for the sample Orders schema."""
    await create_mirror_table("orders", ORDERS_COLUMNS)
    return "orders"


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, mock_airtable_client) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database and Airtable overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_airtable_client] = lambda: mock_airtable_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def mock_leaderboard_client() -> LeaderboardClient:
    """Leaderboard client whose listing call is mocked; installed as an app override."""
    client = LeaderboardClient(base_url="http://leaderboard.test/api/v1", email="a@b.c", password="pw")
    client.list_customers = AsyncMock()
    app.dependency_overrides[get_leaderboard_client] = lambda: client
    return client


@pytest.fixture
def orders_fields() -> list[AirtableField]:
    """Field schema of the sample Orders table."""
    return [
        AirtableField(id="fld1", name="Name", type="singleLineText"),
        AirtableField(id="fld2", name="Amount", type="currency", options={"precision": 2, "symbol": "$"}),
        AirtableField(id="fld3", name="Paid", type="checkbox"),
        AirtableField(id="fld4", name="Order Date", type="date"),
        AirtableField(id="fld5", name="Tags", type="multipleSelects"),
        AirtableField(id="fld6", name="Files", type="multipleAttachments"),
        AirtableField(id="fld7", name="ID", type="singleLineText"),
    ]


@pytest.fixture
def sample_raw_records() -> list[dict[str, Any]]:
    """Sample records as returned by the Airtable records endpoint."""
    return [
        {
            "id": "recA",
            "createdTime": "2024-01-15T10:00:00.000Z",
            "fields": {
                "Name": "Order A",
                "Amount": 1250.5,
                "Paid": True,
                "Order Date": "2024-01-15",
                "Tags": ["retail", "priority"],
                "Files": [{"id": "att1", "url": "https://files.test/a.pdf", "filename": "a.pdf"}],
                "ID": "A-001",
            },
        },
        {
            "id": "recB",
            "createdTime": "2024-01-16T11:00:00.000Z",
            "fields": {
                "Name": "Order B",
                "Amount": "$2,000",
                "Order Date": "2024-01-16T09:30:00.000Z",
            },
        },
        {
            "id": "recC",
            "createdTime": "2024-01-17T12:00:00.000Z",
            "fields": {
                "Name": "Order C",
                "Amount": "n/a",
                "Tags": [],
            },
        },
    ]


@pytest.fixture
def sample_records(sample_raw_records) -> list[AirtableRecord]:
    return [AirtableRecord.model_validate(r) for r in sample_raw_records]


@pytest.fixture
def mock_airtable_client(orders_fields, sample_records) -> AirtableClient:
    """Airtable client with every remote call mocked."""
    client = AirtableClient(token="test_token", base_id="appTEST", backoff_seconds=0)
    client._request_with_retry = AsyncMock()
    client.list_tables = AsyncMock(return_value=[AirtableTable(id="tblOrders", name="Orders")])
    client.get_schema = AsyncMock(return_value=orders_fields)
    client.get_all_records = AsyncMock(return_value=sample_records)
    client.get_record = AsyncMock(return_value=sample_records[0])
    return client

"""Database setup with SQLAlchemy async."""

from collections.abc import AsyncGenerator

from sqlalchemy import inspect, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from airmirror.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def has_table(session: AsyncSession, table_name: str) -> bool:
    """Look a table up in the database catalog."""
    return await session.run_sync(
        lambda sync_session: inspect(sync_session.connection()).has_table(table_name)
    )


def dialect_insert(session: AsyncSession):
    """
    Dialect-specific INSERT construct supporting ON CONFLICT DO UPDATE.

    Postgres in production; SQLite is accepted so tests can run in memory.
    """
    if session.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def check_db_ready() -> None:
    """
    Verify database connectivity and expected schema.

    Mirrored tables are created by operators from generated DDL, so the only
    table required at startup is the metadata table.
    """
    from airmirror.services.schema import METADATA_TABLE, metadata_table_sql

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

        present = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).has_table(METADATA_TABLE)
        )
        if not present:
            raise RuntimeError(
                f"Database schema is missing table {METADATA_TABLE} "
                f"(run migrations or this SQL):\n{metadata_table_sql()}"
            )

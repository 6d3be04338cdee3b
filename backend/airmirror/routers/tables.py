"""API routes for browsing mirrored tables."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import MetaData, Table, select
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.database import get_db, has_table
from airmirror.models import TableMetadata
from airmirror.schemas.tables import TableOverview, TableRecordsResponse, TablesResponse
from airmirror.services.upsert import UpsertEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tables", tags=["tables"])


async def _overview(db: AsyncSession, metadata: TableMetadata) -> TableOverview:
    overview = TableOverview.model_validate(metadata)
    if await has_table(db, metadata.table_name):
        overview.record_count = await UpsertEngine(db).count_live(metadata.table_name)
    else:
        logger.warning(f"Metadata row {metadata.table_name} has no mirrored table")
    return overview


async def _get_metadata(db: AsyncSession, table_name: str) -> TableMetadata:
    result = await db.execute(
        select(TableMetadata).where(TableMetadata.table_name == table_name)
    )
    metadata = result.scalar_one_or_none()
    if metadata is None:
        raise HTTPException(status_code=404, detail=f"Table {table_name} not found")
    return metadata


@router.get("", response_model=TablesResponse)
async def list_tables(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TablesResponse:
    """List synced tables by display name, with live record counts."""
    result = await db.execute(select(TableMetadata).order_by(TableMetadata.display_name))
    tables = [await _overview(db, metadata) for metadata in result.scalars().all()]

    return TablesResponse(
        tables=tables,
        total_records=sum(t.record_count for t in tables),
    )


@router.get("/{table_name}", response_model=TableOverview)
async def get_table(
    table_name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TableOverview:
    return await _overview(db, await _get_metadata(db, table_name))


@router.get("/{table_name}/records", response_model=TableRecordsResponse)
async def list_table_records(
    table_name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(500, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> TableRecordsResponse:
    """
    List live records of a mirrored table, most recently updated first.

    Columns are reflected from the database, so rows carry every mirrored
    field plus the reserved columns.
    """
    overview = await _overview(db, await _get_metadata(db, table_name))
    if not await has_table(db, table_name):
        raise HTTPException(status_code=404, detail=f"Table {table_name} has not been created")

    table = await db.run_sync(
        lambda sync_session: Table(table_name, MetaData(), autoload_with=sync_session.connection())
    )
    result = await db.execute(
        select(table)
        .where(table.c.deleted.is_(False))
        .order_by(table.c.updated_at.desc())
        .limit(limit)
        .offset(offset)
    )
    records = [dict(row._mapping) for row in result.all()]

    return TableRecordsResponse(table=overview, records=records, limit=limit, offset=offset)

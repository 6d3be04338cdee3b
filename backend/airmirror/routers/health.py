"""Health endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.database import get_db
from airmirror.models import TableMetadata

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    tables_synced: int
    last_sync: datetime | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> HealthResponse:
    """Health check endpoint with sync status from the metadata table."""
    result = await db.execute(
        select(func.count(TableMetadata.table_name), func.max(TableMetadata.last_synced_at))
    )
    count, last_sync = result.one()

    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        tables_synced=count or 0,
        last_sync=last_sync,
    )


@router.get("/ready")
async def readiness_check() -> dict:
    """Simple readiness probe for container orchestration."""
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict:
    """Simple liveness probe for container orchestration."""
    return {"status": "alive"}

"""Sales insights over mirrored order tables."""

from datetime import UTC, date, datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.database import get_db
from airmirror.schemas.insights import SalesInsightsResponse
from airmirror.services.insights import InsightsService

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("/sales", response_model=SalesInsightsResponse)
async def get_sales(
    db: Annotated[AsyncSession, Depends(get_db)],
    start: date | None = Query(None, description="First day (default: `days` before end)"),
    end: date | None = Query(None, description="Last day, inclusive (default: today, UTC)"),
    days: int = Query(7, ge=1, le=366, description="Window size when start is omitted"),
) -> SalesInsightsResponse:
    """
    Sales totals, daily series, per-coordinator breakdown and counted orders
    for each orders table.
    """
    end = end or datetime.now(UTC).date()
    start = start or end - timedelta(days=days)
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")

    return await InsightsService(db).sales(start, end)

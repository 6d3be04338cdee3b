"""Manual sync trigger."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from airmirror.config import get_settings
from airmirror.dependencies import get_sync_service
from airmirror.limiter import limiter
from airmirror.schemas.sync import SyncSummary
from airmirror.services.sync import SyncService

logger = logging.getLogger(__name__)
settings = get_settings()
router = APIRouter(tags=["sync"])


@router.post("/sync", response_model=SyncSummary)
@limiter.limit(settings.sync_rate_limit)
async def trigger_sync(
    request: Request,
    service: Annotated[SyncService, Depends(get_sync_service)],
) -> SyncSummary:
    """
    Mirror every Airtable table into the destination store.

    Always 200 once tables are listed, even if every table failed (see
    `success`). Errors before that point (missing metadata table,
    unreachable Airtable) use the error status of their class.
    """
    return await service.run()

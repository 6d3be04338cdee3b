"""FastAPI dependencies wiring services to the request scope."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.database import get_db
from airmirror.services.airtable_client import AirtableClient
from airmirror.services.leaderboard_client import LeaderboardClient
from airmirror.services.sync import SyncService


def get_airtable_client() -> AirtableClient:
    return AirtableClient()


def get_leaderboard_client() -> LeaderboardClient:
    return LeaderboardClient()


def get_sync_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    airtable_client: Annotated[AirtableClient, Depends(get_airtable_client)],
) -> SyncService:
    return SyncService(db, airtable_client)

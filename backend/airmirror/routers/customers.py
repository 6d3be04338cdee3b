"""Customer listing proxy for the leaderboard API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from airmirror.dependencies import get_leaderboard_client
from airmirror.services.leaderboard_client import LeaderboardClient

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("")
async def list_customers(
    client: Annotated[LeaderboardClient, Depends(get_leaderboard_client)],
    page: int = Query(1, ge=1),
    items: int = Query(6, ge=1, le=100, description="Page size"),
    approved: bool = Query(True),
    role: str = Query("Customer"),
) -> dict:
    """Forward a customer listing request; the leaderboard response is passed through."""
    return await client.list_customers(page=page, items=items, approved=approved, role=role)

"""Services for Airtable mirroring and outbound API access."""

from airmirror.services.airtable_client import AirtableClient
from airmirror.services.insights import InsightsService
from airmirror.services.leaderboard_client import LeaderboardClient
from airmirror.services.schema import SchemaReconciler
from airmirror.services.sync import SyncService
from airmirror.services.upsert import UpsertEngine

__all__ = [
    "AirtableClient",
    "InsightsService",
    "LeaderboardClient",
    "SchemaReconciler",
    "SyncService",
    "UpsertEngine",
]

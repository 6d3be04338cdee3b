"""Pydantic schemas for Airtable payloads and API responses."""

from airmirror.schemas.airtable import AirtableField, AirtableRecord, AirtableTable
from airmirror.schemas.insights import SalesInsightsResponse, TableSales
from airmirror.schemas.sync import SyncSummary, TableSyncResult
from airmirror.schemas.tables import TableOverview, TableRecordsResponse, TablesResponse
from airmirror.schemas.webhook import WebhookEvent, WebhookPayload, WebhookResult

__all__ = [
    "AirtableField",
    "AirtableRecord",
    "AirtableTable",
    "SalesInsightsResponse",
    "SyncSummary",
    "TableOverview",
    "TableRecordsResponse",
    "TableSales",
    "TableSyncResult",
    "TablesResponse",
    "WebhookEvent",
    "WebhookPayload",
    "WebhookResult",
]

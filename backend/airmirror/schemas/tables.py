"""Pydantic schemas for browsing mirrored tables."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class TableOverview(BaseModel):
    """Metadata row plus its live record count."""

    model_config = ConfigDict(from_attributes=True)

    table_name: str
    display_name: str
    airtable_table_id: str | None = None
    last_synced_at: datetime | None = None
    record_count: int = 0


class TablesResponse(BaseModel):
    tables: list[TableOverview]
    total_records: int


class TableRecordsResponse(BaseModel):
    """Live rows of one mirrored table, newest first."""

    table: TableOverview
    records: list[dict[str, Any]]
    limit: int
    offset: int

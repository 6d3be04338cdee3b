"""Pydantic schemas for sync run summaries."""

from pydantic import BaseModel


class TableSyncResult(BaseModel):
    """Outcome of syncing a single table."""

    table_name: str
    records_fetched: int = 0
    records_synced: int = 0
    records_before: int = 0
    records_after: int = 0
    records_added: int = 0
    records_updated: int = 0
    error: str | None = None


class SyncSummary(BaseModel):
    """Aggregated outcome of a full sync run."""

    success: bool
    total_tables: int
    completed_tables: int
    total_records_fetched: int = 0
    total_records_synced: int = 0
    total_records_added: int = 0
    total_records_updated: int = 0
    tables: list[TableSyncResult] = []

    @classmethod
    def from_results(cls, results: list[TableSyncResult]) -> "SyncSummary":
        completed = sum(1 for r in results if r.error is None)
        return cls(
            # Partial failure still counts as a run; only an all-failed run is unsuccessful
            success=not results or completed > 0,
            total_tables=len(results),
            completed_tables=completed,
            total_records_fetched=sum(r.records_fetched for r in results),
            total_records_synced=sum(r.records_synced for r in results),
            total_records_added=sum(r.records_added for r in results),
            total_records_updated=sum(r.records_updated for r in results),
            tables=results,
        )

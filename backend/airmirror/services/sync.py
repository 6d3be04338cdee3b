"""Sync orchestrator mirroring a whole Airtable base into Postgres."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.errors import NotFoundError, SchemaMissingError, UpsertBatchError
from airmirror.schemas.airtable import AirtableRecord
from airmirror.schemas.sync import SyncSummary, TableSyncResult
from airmirror.services.airtable_client import AirtableClient
from airmirror.services.schema import SchemaReconciler, metadata_table_sql
from airmirror.services.upsert import UpsertEngine

logger = logging.getLogger(__name__)


def classify(records: list[AirtableRecord], existing_ids: set[str]) -> tuple[int, int]:
    """
    Split fetched records into (added, updated) against the live ids seen
    before the upsert.

    A row that was soft-deleted and reappears counts as added.
    """
    updated = sum(1 for record in records if record.id in existing_ids)
    return len(records) - updated, updated


class SyncService:
    """
    Service for mirroring Airtable tables into the destination store.

    Features:
    - Tables processed sequentially, in Airtable listing order
    - Per-table failure isolation: one table's error never aborts the run
    - Added/updated classification from the live row set before each upsert
    """

    def __init__(
        self,
        db: AsyncSession,
        airtable_client: AirtableClient | None = None,
        reconciler: SchemaReconciler | None = None,
        upserter: UpsertEngine | None = None,
    ):
        self.db = db
        self.airtable = airtable_client or AirtableClient()
        self.reconciler = reconciler or SchemaReconciler(db)
        self.upserter = upserter or UpsertEngine(db)

    async def check_metadata_table(self) -> None:
        """Fail early, with the DDL, when the metadata table has not been created."""
        if not await self.reconciler.metadata_table_exists():
            raise SchemaMissingError(
                "Metadata table does not exist. Please run the migration first.",
                table_name="_table_metadata",
                sql=metadata_table_sql(),
            )

    async def sync_table(self, table_id: str, table_name: str) -> TableSyncResult:
        """
        Sync one Airtable table.

        Never raises: failures are reported in the result's `error` field,
        along with whatever counts were established before the failure.
        """
        logger.info(f"Syncing table: {table_name} ({table_id})")
        result = TableSyncResult(table_name=table_name)

        try:
            fields = await self.airtable.get_schema(table_id)
            logger.info(f"Found {len(fields)} fields in {table_name}")

            await self.reconciler.ensure(table_name, fields, table_id)

            result.records_before = await self.upserter.count_live(table_name)

            records = await self.airtable.get_all_records(table_id)
            result.records_fetched = len(records)

            existing_ids = await self.upserter.live_ids(table_name)
            result.records_added, result.records_updated = classify(records, existing_ids)

            result.records_synced = await self.upserter.upsert(table_name, records, fields)

            result.records_after = await self.upserter.count_live(table_name)
            await self.reconciler.touch_last_synced(table_name)

        except UpsertBatchError as e:
            result.records_synced = e.committed
            result.error = str(e)
            logger.error(f"Error syncing table {table_name}: {e}")
            if e.committed > 0:
                try:
                    await self.reconciler.touch_last_synced(table_name)
                except SQLAlchemyError as touch_error:
                    await self.db.rollback()
                    logger.error(f"Could not stamp last sync of {table_name}: {touch_error}")
        except Exception as e:
            await self.db.rollback()
            result.error = str(e) or type(e).__name__
            logger.error(f"Error syncing table {table_name}: {e}", exc_info=True)
        else:
            logger.info(
                f"Table {table_name} synced: {result.records_synced} records "
                f"({result.records_added} added, {result.records_updated} updated)"
            )

        return result

    async def run(self) -> SyncSummary:
        """
        Sync every table of the base.

        Raises:
            SchemaMissingError: the metadata table is missing
            ConnectivityError: the table listing could not be fetched
        """
        logger.info("Starting Airtable sync")
        await self.check_metadata_table()

        tables = await self.airtable.list_tables()
        if not tables:
            logger.info("No tables found in Airtable base")

        results = []
        for table in tables:
            results.append(await self.sync_table(table.id, table.name))

        summary = SyncSummary.from_results(results)
        logger.info(
            f"Sync complete: {summary.completed_tables}/{summary.total_tables} tables, "
            f"{summary.total_records_synced} records"
        )
        return summary

    async def sync_record(self, table_id: str, table_name: str, record_id: str) -> AirtableRecord:
        """
        Mirror a single record (webhook create/update path).

        Raises:
            NotFoundError: the record no longer exists in Airtable
            SchemaMissingError: the mirrored table has not been created
        """
        fields = await self.airtable.get_schema(table_id)

        record = await self.airtable.get_record(table_id, record_id)
        if record is None:
            raise NotFoundError(
                f"Record {record_id} not found in Airtable",
                code="record_not_found",
            )

        await self.reconciler.ensure(table_name, fields, table_id)
        await self.upserter.upsert(table_name, [record], fields)
        await self.reconciler.touch_last_synced(table_name)
        return record

    async def delete_record(self, table_name: str, record_id: str) -> int:
        """Soft-delete a single record (webhook delete path)."""
        return await self.upserter.mark_deleted(table_name, record_id)

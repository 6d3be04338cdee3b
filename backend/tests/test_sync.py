"""Tests for the sync orchestrator."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from airmirror.errors import ConnectivityError, NotFoundError, SchemaMissingError
from airmirror.models import TableMetadata
from airmirror.schemas.airtable import AirtableField, AirtableRecord, AirtableTable
from airmirror.schemas.sync import SyncSummary, TableSyncResult
from airmirror.services.schema import build_table
from airmirror.services.sync import SyncService, classify
from airmirror.services.upsert import UpsertEngine


def _records(*ids: str) -> list[AirtableRecord]:
    return [AirtableRecord(id=record_id, fields={"Name": record_id}) for record_id in ids]


NAME_FIELDS = [AirtableField(id="fld1", name="Name", type="singleLineText")]


async def _last_synced_and_latest_write(db_session, table_name: str):
    last_synced = (
        await db_session.execute(
            select(TableMetadata.last_synced_at).where(TableMetadata.table_name == table_name)
        )
    ).scalar_one()
    latest_write = (
        await db_session.execute(select(func.max(build_table(table_name).c.updated_at)))
    ).scalar_one()
    return last_synced, latest_write


class TestClassify:
    """Tests for added/updated classification."""

    def test_split(self):
        assert classify(_records("A", "C"), {"A", "B"}) == (1, 1)

    def test_empty(self):
        assert classify([], {"A"}) == (0, 0)
        assert classify(_records("A", "B"), set()) == (2, 0)


class TestSyncSummary:
    """Tests for run-level aggregation."""

    def test_partial_failure_is_success(self):
        summary = SyncSummary.from_results([
            TableSyncResult(table_name="a", records_fetched=2, records_synced=2),
            TableSyncResult(table_name="b", error="boom"),
        ])

        assert summary.success is True
        assert summary.total_tables == 2
        assert summary.completed_tables == 1
        assert summary.total_records_synced == 2

    def test_all_failed_is_not_success(self):
        summary = SyncSummary.from_results([TableSyncResult(table_name="a", error="boom")])

        assert summary.success is False

    def test_empty_base_is_success(self):
        summary = SyncSummary.from_results([])

        assert summary.success is True
        assert summary.total_tables == 0


class TestSyncService:
    """Tests for SyncService against SQLite with a mocked Airtable client."""

    @pytest.mark.asyncio
    async def test_run_single_table(self, db_session, orders_table, mock_airtable_client):
        service = SyncService(db_session, mock_airtable_client)

        summary = await service.run()

        assert summary.success is True
        assert summary.completed_tables == 1
        table = summary.tables[0]
        assert table.error is None
        assert table.records_fetched == 3
        assert table.records_synced == 3
        assert table.records_before == 0
        assert table.records_after == 3
        assert table.records_added == 3
        assert table.records_updated == 0

        metadata = (await db_session.execute(select(TableMetadata))).scalar_one()
        assert metadata.table_name == "orders"
        assert metadata.airtable_table_id == "tblOrders"

    @pytest.mark.asyncio
    async def test_rerun_counts_updates(self, db_session, orders_table, mock_airtable_client):
        service = SyncService(db_session, mock_airtable_client)
        await service.run()

        summary = await service.run()

        table = summary.tables[0]
        assert table.records_before == 3
        assert table.records_after == 3
        assert table.records_added == 0
        assert table.records_updated == 3

    @pytest.mark.asyncio
    async def test_added_and_updated_classification(self, db_session, create_mirror_table, mock_airtable_client):
        await create_mirror_table("people", {"name": "TEXT"})
        mock_airtable_client.list_tables.return_value = [AirtableTable(id="tblPeople", name="People")]
        mock_airtable_client.get_schema.return_value = NAME_FIELDS
        service = SyncService(db_session, mock_airtable_client)

        mock_airtable_client.get_all_records.return_value = _records("A", "B")
        await service.run()
        mock_airtable_client.get_all_records.return_value = _records("A", "C")
        summary = await service.run()

        table = summary.tables[0]
        assert table.records_fetched == 2
        assert table.records_updated == 1
        assert table.records_added == 1
        # Records missing from a full fetch are not soft-deleted
        assert table.records_after == 3
        assert await UpsertEngine(db_session).live_ids("people") == {"A", "B", "C"}

    @pytest.mark.asyncio
    async def test_missing_table_is_isolated(self, db_session, create_mirror_table, mock_airtable_client):
        await create_mirror_table("alpha", {"name": "TEXT"})
        await create_mirror_table("gamma", {"name": "TEXT"})
        mock_airtable_client.list_tables.return_value = [
            AirtableTable(id="tblAlpha", name="Alpha"),
            AirtableTable(id="tblBeta", name="Beta"),
            AirtableTable(id="tblGamma", name="Gamma"),
        ]
        mock_airtable_client.get_schema.return_value = NAME_FIELDS
        mock_airtable_client.get_all_records.return_value = _records("A", "B")
        service = SyncService(db_session, mock_airtable_client)

        summary = await service.run()

        assert summary.success is True
        assert summary.total_tables == 3
        assert summary.completed_tables == 2
        alpha, beta, gamma = summary.tables
        assert alpha.error is None and gamma.error is None
        assert alpha.records_synced == 2 and gamma.records_synced == 2
        assert beta.error is not None
        assert "beta" in beta.error
        assert beta.records_fetched == 0
        assert beta.records_synced == 0
        # Records are never fetched for a table without a mirror
        assert mock_airtable_client.get_all_records.call_count == 2

    @pytest.mark.asyncio
    async def test_all_tables_failed(self, db_session, mock_airtable_client):
        service = SyncService(db_session, mock_airtable_client)

        summary = await service.run()

        assert summary.success is False
        assert summary.completed_tables == 0
        assert summary.tables[0].error is not None

    @pytest.mark.asyncio
    async def test_fetch_failure_is_reported(self, db_session, orders_table, mock_airtable_client):
        mock_airtable_client.get_all_records.side_effect = ConnectivityError("page 2 failed")
        service = SyncService(db_session, mock_airtable_client)

        summary = await service.run()

        table = summary.tables[0]
        assert table.error == "page 2 failed"
        assert table.records_fetched == 0
        assert summary.success is False

    @pytest.mark.asyncio
    async def test_upsert_partial_failure(self, db_session, create_mirror_table, mock_airtable_client):
        await create_mirror_table("invoices", {"total": "NUMERIC NOT NULL"})
        mock_airtable_client.list_tables.return_value = [AirtableTable(id="tblInv", name="Invoices")]
        mock_airtable_client.get_schema.return_value = [AirtableField(id="fld1", name="Total", type="number")]
        mock_airtable_client.get_all_records.return_value = [
            AirtableRecord(id="rec1", fields={"Total": 1}),
            AirtableRecord(id="rec2", fields={}),
        ]
        service = SyncService(db_session, mock_airtable_client, upserter=UpsertEngine(db_session, batch_size=1))

        summary = await service.run()

        table = summary.tables[0]
        assert table.records_fetched == 2
        assert table.records_synced == 1
        assert table.error is not None
        assert summary.completed_tables == 0

        last_synced, latest_write = await _last_synced_and_latest_write(db_session, "invoices")
        assert latest_write is not None
        assert last_synced >= latest_write

    @pytest.mark.asyncio
    async def test_list_failure_propagates(self, db_session, mock_airtable_client):
        mock_airtable_client.list_tables.side_effect = ConnectivityError("Airtable unreachable")
        service = SyncService(db_session, mock_airtable_client)

        with pytest.raises(ConnectivityError):
            await service.run()

    @pytest.mark.asyncio
    async def test_empty_base(self, db_session, mock_airtable_client):
        mock_airtable_client.list_tables.return_value = []
        service = SyncService(db_session, mock_airtable_client)

        summary = await service.run()

        assert summary.success is True
        assert summary.tables == []

    @pytest.mark.asyncio
    async def test_metadata_table_missing(self, async_engine, mock_airtable_client):
        session_maker = async_sessionmaker(async_engine, class_=AsyncSession)

        async with session_maker() as session:
            service = SyncService(session, mock_airtable_client)

            with pytest.raises(SchemaMissingError) as exc_info:
                await service.run()

        assert "_table_metadata" in exc_info.value.sql
        mock_airtable_client.list_tables.assert_not_called()


class TestSingleRecordSync:
    """Tests for the webhook-driven single-record paths."""

    @pytest.mark.asyncio
    async def test_sync_record(self, db_session, orders_table, mock_airtable_client, sample_records):
        service = SyncService(db_session, mock_airtable_client)

        record = await service.sync_record("tblOrders", "Orders", "recA")

        assert record.id == "recA"
        mock_airtable_client.get_record.assert_awaited_once_with("tblOrders", "recA")
        assert await UpsertEngine(db_session).live_ids("orders") == {"recA"}

        last_synced, latest_write = await _last_synced_and_latest_write(db_session, "orders")
        assert last_synced >= latest_write

    @pytest.mark.asyncio
    async def test_sync_record_not_found(self, db_session, orders_table, mock_airtable_client):
        mock_airtable_client.get_record = AsyncMock(return_value=None)
        service = SyncService(db_session, mock_airtable_client)

        with pytest.raises(NotFoundError) as exc_info:
            await service.sync_record("tblOrders", "Orders", "recGone")

        assert exc_info.value.code == "record_not_found"

    @pytest.mark.asyncio
    async def test_sync_record_missing_table(self, db_session, mock_airtable_client):
        service = SyncService(db_session, mock_airtable_client)

        with pytest.raises(SchemaMissingError):
            await service.sync_record("tblOrders", "Orders", "recA")

    @pytest.mark.asyncio
    async def test_delete_record(self, db_session, orders_table, mock_airtable_client):
        service = SyncService(db_session, mock_airtable_client)
        await service.run()

        assert await service.delete_record("Orders", "recA") == 1
        assert await UpsertEngine(db_session).live_ids("orders") == {"recB", "recC"}

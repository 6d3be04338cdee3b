"""Upsert engine writing Airtable records into mirrored tables."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.config import get_settings
from airmirror.database import dialect_insert, has_table
from airmirror.errors import UpsertBatchError
from airmirror.schemas.airtable import AirtableField, AirtableRecord
from airmirror.services.schema import build_table
from airmirror.services.type_mapper import MISSING, coerce_value, field_columns, sanitize_name

logger = logging.getLogger(__name__)
settings = get_settings()


def build_row(
    record: AirtableRecord,
    fields: list[AirtableField],
    now: datetime | None = None,
) -> dict[str, Any]:
    """Turn an Airtable record into a mirrored row keyed by its record id."""
    row: dict[str, Any] = {
        "airtable_id": record.id,
        "raw_json": record.fields,
        "updated_at": now or datetime.now(UTC),
        "deleted": False,
    }
    for field, name in field_columns(fields):
        row[name] = coerce_value(record.fields.get(field.name, MISSING), field.type)
    return row


class UpsertEngine:
    """
    Idempotent writer for mirrored tables.

    Features:
    - Upsert keyed on airtable_id (update on conflict, never ignore)
    - Fixed-size batches, committed one at a time
    - Soft deletes via the `deleted` flag; rows are never removed
    """

    def __init__(self, db: AsyncSession, batch_size: int = settings.upsert_batch_size):
        self.db = db
        self.batch_size = batch_size

    async def upsert(
        self,
        table_name: str,
        records: list[AirtableRecord],
        fields: list[AirtableField],
    ) -> int:
        """
        Upsert records into a mirrored table.

        Batches run in order; the first failing batch aborts the rest. Earlier
        batches stay committed.

        Returns:
            Number of rows written

        Raises:
            UpsertBatchError: a batch failed; `committed` holds rows already written
        """
        if not records:
            return 0

        sanitized = sanitize_name(table_name)
        table = build_table(sanitized, fields)
        now = datetime.now(UTC)
        rows = [build_row(record, fields, now) for record in records]

        insert = dialect_insert(self.db)
        stmt = insert(table)
        stmt = stmt.on_conflict_do_update(
            index_elements=["airtable_id"],
            set_={c.name: stmt.excluded[c.name] for c in table.columns if c.name != "airtable_id"},
        )

        upserted = 0
        for i in range(0, len(rows), self.batch_size):
            batch = rows[i:i + self.batch_size]
            batch_number = i // self.batch_size + 1
            try:
                await self.db.execute(stmt, batch)
                # Commit each batch to avoid long transactions
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Error upserting batch {batch_number} into {sanitized}: {e}")
                raise UpsertBatchError(
                    f"Upsert into {sanitized} failed at batch {batch_number}: {e}",
                    committed=upserted,
                ) from e

            upserted += len(batch)
            logger.info(f"Upserted batch {batch_number} into {sanitized}: {upserted}/{len(rows)} records")

        return upserted

    async def mark_deleted(self, table_name: str, airtable_id: str) -> int:
        """
        Soft-delete one row. The payload is left untouched.

        Returns:
            Number of rows flagged (0 when nothing matched)
        """
        sanitized = sanitize_name(table_name)
        if not await has_table(self.db, sanitized):
            logger.warning(f"Table {sanitized} does not exist; nothing to delete")
            return 0

        table = build_table(sanitized)
        result = await self.db.execute(
            update(table)
            .where(table.c.airtable_id == airtable_id)
            .values(deleted=True, updated_at=datetime.now(UTC))
        )
        await self.db.commit()
        return result.rowcount or 0

    async def count_live(self, table_name: str) -> int:
        """Count rows whose soft-delete flag is false."""
        table = build_table(table_name)
        result = await self.db.execute(
            select(func.count()).select_from(table).where(table.c.deleted.is_(False))
        )
        return result.scalar() or 0

    async def live_ids(self, table_name: str) -> set[str]:
        """Record ids of all live rows."""
        table = build_table(table_name)
        result = await self.db.execute(
            select(table.c.airtable_id).where(table.c.deleted.is_(False))
        )
        return set(result.scalars().all())

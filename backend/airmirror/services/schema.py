"""
Schema reconciliation between Airtable tables and mirrored Postgres tables.

Structural changes are human-gated: when a mirrored table is missing, the
reconciler generates the DDL and refuses to continue. It never executes DDL.
Data changes (metadata rows) are applied automatically.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, MetaData, Table, Text, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.database import dialect_insert, has_table
from airmirror.errors import SchemaMissingError
from airmirror.models import TableMetadata
from airmirror.schemas.airtable import AirtableField
from airmirror.services.type_mapper import (
    field_columns,
    map_type,
    sanitize_name,
    sqlalchemy_type,
)

logger = logging.getLogger(__name__)

METADATA_TABLE = TableMetadata.__tablename__


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def metadata_table_sql() -> str:
    """DDL for the metadata table every mirrored table is registered in."""
    return f"""
-- Create metadata table
CREATE TABLE IF NOT EXISTS {METADATA_TABLE} (
  table_name text PRIMARY KEY,
  display_name text NOT NULL,
  airtable_table_id text,
  last_synced_at timestamptz,
  created_at timestamptz DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_table_metadata_display_name ON {METADATA_TABLE}(display_name);
""".strip()


def generate_table_sql(
    table_name: str,
    fields: list[AirtableField],
    table_id: str | None = None,
) -> str:
    """
    Generate the Postgres DDL mirroring an Airtable table.

    Reserved columns first, then one column per field (sanitized name, mapped
    type), indexes on the record id and the soft-delete flag, and the
    metadata registration.
    """
    sanitized = sanitize_name(table_name)
    quoted = _quote(sanitized)

    columns = [
        "id uuid PRIMARY KEY DEFAULT gen_random_uuid()",
        "airtable_id text UNIQUE NOT NULL",
        "raw_json jsonb NOT NULL",
        "created_at timestamptz DEFAULT now()",
        "updated_at timestamptz DEFAULT now()",
        "deleted boolean DEFAULT false",
    ]
    for field, name in field_columns(fields):
        columns.append(f"{_quote(name)} {map_type(field.type).value}")

    column_sql = ",\n  ".join(columns)
    return f"""
-- Create table: {table_name}
CREATE TABLE IF NOT EXISTS {quoted} (
  {column_sql}
);

-- Create indexes
CREATE INDEX IF NOT EXISTS {_quote(f"idx_{sanitized}_airtable_id")} ON {quoted}(airtable_id);
CREATE INDEX IF NOT EXISTS {_quote(f"idx_{sanitized}_deleted")} ON {quoted}(deleted);

-- Register in metadata
INSERT INTO {METADATA_TABLE} (table_name, display_name, airtable_table_id, last_synced_at)
VALUES ({_literal(sanitized)}, {_literal(table_name)}, {_literal(table_id or table_name)}, now())
ON CONFLICT (table_name)
DO UPDATE SET
  display_name = EXCLUDED.display_name,
  airtable_table_id = EXCLUDED.airtable_table_id,
  last_synced_at = EXCLUDED.last_synced_at;
""".strip()


def build_table(table_name: str, fields: list[AirtableField] | None = None) -> Table:
    """
    SQLAlchemy Table used to write into a mirrored table.

    `id` and `created_at` are left out: the database fills them on insert and
    upserts never touch them.
    """
    table = Table(
        sanitize_name(table_name),
        MetaData(),
        Column("airtable_id", Text, nullable=False, unique=True),
        Column("raw_json", JSON().with_variant(JSONB(), "postgresql"), nullable=False),
        Column("updated_at", DateTime(timezone=True)),
        Column("deleted", Boolean, nullable=False),
    )
    for field, name in field_columns(fields or []):
        table.append_column(Column(name, sqlalchemy_type(map_type(field.type))))
    return table


class SchemaReconciler:
    """Verifies mirrored tables exist and keeps their metadata rows current."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def table_exists(self, table_name: str) -> bool:
        """Catalog lookup for a mirrored table (by display or sanitized name)."""
        return await has_table(self.db, sanitize_name(table_name))

    async def metadata_table_exists(self) -> bool:
        return await has_table(self.db, METADATA_TABLE)

    async def ensure(
        self,
        table_name: str,
        fields: list[AirtableField],
        table_id: str | None = None,
    ) -> None:
        """
        Make sure a mirrored table exists and register it in the metadata table.

        Raises:
            SchemaMissingError: the table is absent; carries the DDL to run
        """
        sanitized = sanitize_name(table_name)

        if not await self.table_exists(sanitized):
            sql = generate_table_sql(table_name, fields, table_id)
            logger.warning(
                f'Table "{sanitized}" does not exist. Run this SQL to create it:\n{sql}'
            )
            raise SchemaMissingError(
                f"Table {sanitized} does not exist. Please create it first.",
                table_name=sanitized,
                sql=sql,
            )

        await self.upsert_metadata(sanitized, table_name, table_id or table_name)

    async def upsert_metadata(self, sanitized: str, display_name: str, table_id: str) -> None:
        """Insert or refresh the metadata row of a mirrored table."""
        now = datetime.now(UTC)
        insert = dialect_insert(self.db)
        stmt = insert(TableMetadata).values(
            table_name=sanitized,
            display_name=display_name,
            airtable_table_id=table_id,
            last_synced_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["table_name"],
            set_={
                "display_name": display_name,
                "airtable_table_id": table_id,
                "last_synced_at": now,
            },
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def touch_last_synced(self, table_name: str) -> None:
        """Stamp a table's metadata row with the current time."""
        await self.db.execute(
            update(TableMetadata)
            .where(TableMetadata.table_name == sanitize_name(table_name))
            .values(last_synced_at=datetime.now(UTC))
        )
        await self.db.commit()

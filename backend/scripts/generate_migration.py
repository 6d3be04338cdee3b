#!/usr/bin/env python3
"""
Generate a SQL migration creating a mirrored table for every Airtable table.

Review the file, run it against the database, then run scripts/sync.py.
"""

import asyncio
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(".env.local")
load_dotenv()

from airmirror.errors import AirMirrorError  # noqa: E402
from airmirror.services.airtable_client import AirtableClient  # noqa: E402
from airmirror.services.schema import generate_table_sql, metadata_table_sql  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
logger = logging.getLogger("generate_migration")


async def build_migration(client: AirtableClient) -> str:
    """Metadata DDL followed by one block per table; tables whose schema fails are skipped."""
    tables = await client.list_tables()
    logger.info(f"Found {len(tables)} tables")

    parts = [metadata_table_sql(), ""]
    for table in tables:
        logger.info(f"Processing: {table.name}")
        try:
            fields = await client.get_schema(table.id)
        except AirMirrorError as e:
            logger.error(f"Error processing {table.name}: {e}")
            continue
        parts.append(f"-- Table: {table.name}")
        parts.append(generate_table_sql(table.name, fields, table.id))
        parts.append("")

    return "\n".join(parts)


async def main() -> int:
    try:
        sql = await build_migration(AirtableClient())
    except AirMirrorError as e:
        logger.error(f"Migration generation failed: {e}")
        return 1

    timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S")
    path = Path.cwd() / f"migration-{timestamp}.sql"
    path.write_text(sql)

    print(f"Migration file generated: {path.name}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

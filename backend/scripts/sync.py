#!/usr/bin/env python3
"""
Airtable -> Postgres sync from the command line.

Fetches every table of the base, checks the mirrored tables exist, and
upserts all records. Exits 1 if the run fails.
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

load_dotenv(".env.local")
load_dotenv()

from airmirror.database import async_session_maker  # noqa: E402
from airmirror.errors import AirMirrorError, SchemaMissingError  # noqa: E402
from airmirror.services.airtable_client import AirtableClient  # noqa: E402
from airmirror.services.sync import SyncService  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("sync")


async def main() -> int:
    async with async_session_maker() as db:
        service = SyncService(db, AirtableClient())
        try:
            summary = await service.run()
        except SchemaMissingError as e:
            logger.error(f"{e.message}\nRun this SQL first:\n{e.sql}")
            return 1
        except AirMirrorError as e:
            logger.error(f"Sync failed: {e.message}")
            return 1

    for table in summary.tables:
        status = f"error: {table.error}" if table.error else "ok"
        print(
            f"{table.table_name}: fetched={table.records_fetched} synced={table.records_synced} "
            f"added={table.records_added} updated={table.records_updated} "
            f"before={table.records_before} after={table.records_after} [{status}]",
            flush=True,
        )

    print(
        f"Synced {summary.completed_tables}/{summary.total_tables} tables, "
        f"{summary.total_records_synced} records",
        flush=True,
    )
    return 0 if summary.success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

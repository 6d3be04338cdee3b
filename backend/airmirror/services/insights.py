"""Sales insights computed from mirrored order tables."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy import MetaData, Table, select
from sqlalchemy.ext.asyncio import AsyncSession

from airmirror.database import has_table
from airmirror.schemas.insights import (
    CoordinatorSales,
    DailySales,
    SalesInsightsResponse,
    SalesOrder,
    TableSales,
)
from airmirror.services.type_mapper import sanitize_name, sanitize_numeric

logger = logging.getLogger(__name__)

UNKNOWN_COORDINATOR = "Unknown"


@dataclass(frozen=True)
class SalesSource:
    """
    Where an orders table keeps its sales figures.

    Keys are sanitized column names. Each value is read from the typed column
    first, then from the record payload (`raw_json`, matched on sanitized
    field names) with the extra `raw_*` keys appended.
    """

    table_name: str
    amount_keys: tuple[str, ...]
    coordinator_keys: tuple[str, ...]
    order_id_keys: tuple[str, ...]
    raw_amount_keys: tuple[str, ...] = ()
    raw_coordinator_keys: tuple[str, ...] = ()
    date_column: str = "order_date"


SALES_SOURCES = (
    SalesSource(
        table_name="rmp_orders",
        amount_keys=("total_amount",),
        raw_amount_keys=("amount",),
        coordinator_keys=("sales_coordinator",),
        order_id_keys=("order_id",),
    ),
    SalesSource(
        table_name="order_report",
        amount_keys=("total_sales__including_gst_", "sales_value__ex_taxes_"),
        coordinator_keys=("key_account_manager__kam_",),
        raw_coordinator_keys=("sales_coordinator",),
        order_id_keys=("order_id", "jobsheet_number"),
    ),
)


def _payload(row: dict[str, Any]) -> dict[str, Any]:
    raw = row.get("raw_json")
    if not isinstance(raw, dict):
        return {}
    return {sanitize_name(key): value for key, value in raw.items()}


def _order_day(value: Any) -> date | None:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def order_amount(row: dict[str, Any], source: SalesSource) -> float:
    """First non-zero amount among the typed columns, then the payload."""
    payload = _payload(row)
    candidates = [row.get(key) for key in source.amount_keys]
    candidates += [payload.get(key) for key in source.amount_keys + source.raw_amount_keys]
    for value in candidates:
        amount = sanitize_numeric(value)
        if amount:
            return amount
    return 0.0


def order_coordinator(row: dict[str, Any], source: SalesSource) -> str:
    payload = _payload(row)
    candidates = [row.get(key) for key in source.coordinator_keys]
    candidates += [payload.get(key) for key in source.coordinator_keys + source.raw_coordinator_keys]
    for value in candidates:
        if value:
            return str(value)
    return UNKNOWN_COORDINATOR


def order_id(row: dict[str, Any], source: SalesSource) -> str:
    payload = _payload(row)
    for key in source.order_id_keys:
        if payload.get(key):
            return str(payload[key])
    return "-"


def summarize(table_name: str, rows: list[dict[str, Any]], source: SalesSource) -> TableSales:
    """
    Aggregate order rows into daily and per-coordinator sales.

    Rows without an order date or with a non-positive amount are skipped.
    """
    by_day: dict[date, float] = defaultdict(float)
    by_coordinator: dict[str, float] = defaultdict(float)
    orders: list[SalesOrder] = []

    for row in rows:
        day = _order_day(row.get(source.date_column))
        if day is None:
            continue

        amount = order_amount(row, source)
        if amount <= 0:
            continue

        coordinator = order_coordinator(row, source)
        by_day[day] += amount
        by_coordinator[coordinator] += amount
        orders.append(
            SalesOrder(date=day, coordinator=coordinator, sales=amount, order_id=order_id(row, source))
        )

    return TableSales(
        table_name=table_name,
        total_sales=sum(order.sales for order in orders),
        daily=[DailySales(date=day, sales=sales) for day, sales in sorted(by_day.items())],
        by_coordinator=[
            CoordinatorSales(coordinator=name, sales=sales)
            for name, sales in sorted(by_coordinator.items(), key=lambda item: item[1], reverse=True)
        ],
        orders=sorted(orders, key=lambda order: order.date, reverse=True),
    )


class InsightsService:
    """Reads live order rows from mirrored tables and aggregates sales."""

    def __init__(self, db: AsyncSession, sources: tuple[SalesSource, ...] = SALES_SOURCES):
        self.db = db
        self.sources = sources

    async def _order_rows(self, source: SalesSource, start: date, end: date) -> list[dict[str, Any]]:
        table = await self.db.run_sync(
            lambda sync_session: Table(
                source.table_name, MetaData(), autoload_with=sync_session.connection()
            )
        )
        if source.date_column not in table.c:
            logger.warning(f"Table {source.table_name} has no {source.date_column} column")
            return []

        order_date = table.c[source.date_column]
        result = await self.db.execute(
            select(table)
            .where(table.c.deleted.is_(False))
            .where(order_date.is_not(None))
            .where(order_date >= datetime.combine(start, time.min, tzinfo=UTC))
            # End date is inclusive
            .where(order_date < datetime.combine(end + timedelta(days=1), time.min, tzinfo=UTC))
            .order_by(order_date)
        )
        return [dict(row._mapping) for row in result.all()]

    async def table_sales(self, source: SalesSource, start: date, end: date) -> TableSales:
        if not await has_table(self.db, source.table_name):
            logger.warning(f"Sales table {source.table_name} has not been created")
            return TableSales(table_name=source.table_name, available=False)

        rows = await self._order_rows(source, start, end)
        return summarize(source.table_name, rows, source)

    async def sales(self, start: date, end: date) -> SalesInsightsResponse:
        """Sales per table between two dates, both inclusive."""
        tables = [await self.table_sales(source, start, end) for source in self.sources]
        logger.info(f"Sales insights {start}..{end}: {sum(len(t.orders) for t in tables)} orders")
        return SalesInsightsResponse(
            start=start,
            end=end,
            total_sales=sum(t.total_sales for t in tables),
            tables=tables,
        )

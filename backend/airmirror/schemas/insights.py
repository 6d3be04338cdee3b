"""Pydantic schemas for sales insights."""

from datetime import date

from pydantic import BaseModel


class DailySales(BaseModel):
    date: date
    sales: float


class CoordinatorSales(BaseModel):
    coordinator: str
    sales: float


class SalesOrder(BaseModel):
    """One order counted in the totals."""

    date: date
    coordinator: str
    sales: float
    order_id: str


class TableSales(BaseModel):
    """
    Sales aggregated from one mirrored orders table.

    `available` is false when the table has not been created; every total
    is then zero.
    """

    table_name: str
    available: bool = True
    total_sales: float = 0.0
    daily: list[DailySales] = []
    by_coordinator: list[CoordinatorSales] = []
    orders: list[SalesOrder] = []


class SalesInsightsResponse(BaseModel):
    start: date
    end: date
    total_sales: float
    tables: list[TableSales]

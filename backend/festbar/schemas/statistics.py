"""Statistics schemas"""
from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, Field


class ItemTotalResponse(BaseModel):
    quantity: int = 0
    amount: Decimal = Decimal("0")


class TableStatisticsResponse(BaseModel):
    table_number: int
    total_orders: int = 0
    total_amount: Decimal = Decimal("0")
    items: Dict[str, ItemTotalResponse] = Field(default_factory=dict)


class StatisticsSnapshot(BaseModel):
    """Global and per-table aggregate of completed orders."""
    total_orders: int = 0
    total_amount: Decimal = Decimal("0")
    item_totals: Dict[str, ItemTotalResponse] = Field(default_factory=dict)
    tables: Dict[int, TableStatisticsResponse] = Field(default_factory=dict)


class PopularItem(BaseModel):
    item_id: str
    name: str
    quantity: int

"""Order schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from festbar.services.alert_phase import AlertPhase


class OrderLineCreate(BaseModel):
    """Line item as submitted by a table or waiter device."""

    name: str = Field(..., min_length=1, max_length=200)
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)


class OrderLineResponse(BaseModel):
    name: str
    unit_price: Decimal
    quantity: int

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    """Guest order submission."""

    table_number: int = Field(..., ge=1)
    lines: List[OrderLineCreate] = Field(..., min_length=1)
    total: Optional[Decimal] = Field(default=None, ge=0)
    ordered_by: Optional[str] = Field(default=None, max_length=100)
    created_at: Optional[datetime] = None  # client clock, server time when omitted

    @model_validator(mode="after")
    def fill_total(self):
        """Precompute the total once, at submission time."""
        if self.total is None:
            self.total = sum((line.unit_price * line.quantity for line in self.lines), Decimal("0"))
        return self


class WaiterCallCreate(BaseModel):
    table_number: int = Field(..., ge=1)


class ClaimRequest(BaseModel):
    waiter_name: str = Field(..., min_length=1, max_length=100)


class HideRequest(BaseModel):
    """Empty for the bar; a waiter identifies themself."""

    waiter_name: Optional[str] = Field(default=None, max_length=100)


class OrderResponse(BaseModel):
    id: int
    table_number: int
    kind: str
    lines: List[OrderLineResponse] = []
    total: Decimal
    created_at: datetime
    ordered_by: Optional[str] = None
    claimed_by: Optional[str] = None
    claimed_at: Optional[datetime] = None
    hidden_from_bar: bool = False
    stats_recorded: bool = False

    model_config = {"from_attributes": True}


class BoardOrder(OrderResponse):
    """Order as rendered on a live board, with its current alert phase."""

    phase: AlertPhase


class BoardSnapshot(BaseModel):
    view: str
    generated_at: datetime
    auto_hide_minutes: float
    orders: List[BoardOrder]


class LifecycleResponse(BaseModel):
    """Outcome of a lifecycle transition.

    ``status`` is ``"gone"`` when the order had already been removed by
    another client; that is not an error.
    """

    order_id: int
    status: str
    stats_outcome: Optional[str] = None
    order: Optional[OrderResponse] = None

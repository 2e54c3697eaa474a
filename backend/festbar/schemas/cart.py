"""Cart session schemas"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from festbar.services.glass_prompt_queue import PromptState


class CartOpen(BaseModel):
    table_number: int = Field(..., ge=1)


class CartItemRequest(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(1, gt=0, le=99)


class CartItemsAdd(BaseModel):
    items: List[CartItemRequest] = Field(..., min_length=1)


class GlassAnswer(BaseModel):
    glasses: int = Field(..., ge=0, le=99)


class CartCheckout(BaseModel):
    ordered_by: Optional[str] = Field(default=None, max_length=100)


class CartLineResponse(BaseModel):
    item_id: str
    name: str
    unit_price: Decimal
    quantity: int

    model_config = {"from_attributes": True}


class GlassPromptResponse(BaseModel):
    item_id: str
    name: str
    quantity: int
    glass_type: str
    glass_item_id: str

    model_config = {"from_attributes": True}


class CartState(BaseModel):
    session_id: str
    table_number: int
    state: PromptState
    current: Optional[GlassPromptResponse] = None
    pending: List[GlassPromptResponse] = []
    lines: List[CartLineResponse] = []
    total: Decimal = Decimal("0")

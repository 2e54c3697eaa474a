"""Menu item schemas"""
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

GlassType = Literal["beer", "wine", "sekt"]


class MenuItemUpsert(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    unit_price: Decimal = Field(..., ge=0)
    category: str = Field(..., min_length=1, max_length=50)
    glass_type: Optional[GlassType] = None
    requires_glass_prompt: bool = False
    is_sold_out: bool = False


class MenuItemResponse(MenuItemUpsert):
    item_id: str

    model_config = {"from_attributes": True}

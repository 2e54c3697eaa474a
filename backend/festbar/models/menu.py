"""Menu configuration model."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from festbar.db.base import Base, TimestampMixin

GLASSES_CATEGORY = "glaeser"


class MenuItem(Base, TimestampMixin):
    """Orderable item as configured for the event."""

    __tablename__ = "menu_items"

    item_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    glass_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # beer, wine, sekt
    requires_glass_prompt: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_sold_out: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


# Empty glasses handed out with bottles, one per glass type
GLASS_ITEM_IDS = {
    "beer": "glas-normal",
    "wine": "glas-wein-leer",
    "sekt": "glas-sekt-leer",
}
GLASS_ITEM_NAMES = {
    "glas-normal": "Bierglas (leer)",
    "glas-wein-leer": "Weinglas (leer)",
    "glas-sekt-leer": "Sektglas (leer)",
}

"""Menu configuration: the items guests can order and their glass settings."""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from festbar.models.menu import GLASS_ITEM_IDS, GLASS_ITEM_NAMES, GLASSES_CATEGORY, MenuItem
from festbar.schemas.menu import MenuItemUpsert
from festbar.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class MenuService:
    def __init__(self, db: Session):
        self.db = db

    def seed_glasses(self) -> int:
        """Create the empty-glass items if they are missing. Returns the number created."""
        created = 0
        for glass_type, item_id in GLASS_ITEM_IDS.items():
            if self.db.get(MenuItem, item_id):
                continue
            self.db.add(MenuItem(
                item_id=item_id,
                name=GLASS_ITEM_NAMES[item_id],
                unit_price=Decimal("0.00"),
                category=GLASSES_CATEGORY,
                glass_type=glass_type,
            ))
            created += 1
        if created:
            self.db.commit()
            logger.info(f"Seeded {created} glass items")
        return created

    def list_items(self, category: Optional[str] = None) -> List[MenuItem]:
        query = self.db.query(MenuItem)
        if category:
            query = query.filter(MenuItem.category == category)
        return query.order_by(MenuItem.category, MenuItem.name).all()

    def resolve(self, item_id: str) -> Optional[MenuItem]:
        """Look up an item by id, None if it does not exist."""
        return self.db.get(MenuItem, item_id)

    def upsert(self, item_id: str, data: MenuItemUpsert) -> MenuItem:
        """Create or replace a menu item and tell clients to reload the menu."""
        item = self.db.get(MenuItem, item_id)
        if item is None:
            item = MenuItem(item_id=item_id)
            self.db.add(item)
        for field, value in data.model_dump().items():
            setattr(item, field, value)
        self.db.commit()
        self.db.refresh(item)

        SettingsService(self.db).bump_menu_version()
        logger.info(f"Menu item {item_id} saved")
        return item

"""Menu routes."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from festbar.core.pin_gate import require_pin
from festbar.db.session import DbSession
from festbar.schemas.menu import MenuItemResponse, MenuItemUpsert
from festbar.services.live_updates import publish
from festbar.services.menu_service import MenuService
from festbar.services.websocket_service import Channel

router = APIRouter()


@router.get("/items", response_model=List[MenuItemResponse])
def list_menu_items(db: DbSession, category: Optional[str] = Query(None)):
    return MenuService(db).list_items(category)


@router.put(
    "/items/{item_id}",
    response_model=MenuItemResponse,
    dependencies=[Depends(require_pin("products_page"))],
)
def upsert_menu_item(
    item_id: str,
    item: MenuItemUpsert,
    background_tasks: BackgroundTasks,
    db: DbSession,
):
    """Create or update an item, e.g. to mark it sold out."""
    saved = MenuService(db).upsert(item_id, item)
    publish(background_tasks, db, (Channel.SETTINGS,))
    return saved

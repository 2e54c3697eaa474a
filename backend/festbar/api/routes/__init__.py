"""API routes."""

from fastapi import APIRouter

from festbar.api.routes import broadcast, cart, menu, orders, settings, statistics, tables, waiters

api_router = APIRouter()

api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(statistics.router, prefix="/statistics", tags=["statistics"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(broadcast.router, prefix="/broadcast", tags=["broadcast"])
api_router.include_router(menu.router, prefix="/menu", tags=["menu"])
api_router.include_router(cart.router, prefix="/cart", tags=["cart"])
api_router.include_router(waiters.router, prefix="/waiters", tags=["waiters"])
api_router.include_router(tables.router, prefix="/tables", tags=["tables"])

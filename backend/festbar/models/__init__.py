"""SQLAlchemy models."""

from festbar.models.order import Order, OrderLine, OrderKind
from festbar.models.statistics import StatisticsTotals, ItemTotal, TableStatistics, TableItemTotal
from festbar.models.settings import AppSetting
from festbar.models.waiter import WaiterAssignment, FcmToken
from festbar.models.menu import MenuItem, GLASSES_CATEGORY, GLASS_ITEM_IDS, GLASS_ITEM_NAMES

__all__ = [
    "Order",
    "OrderLine",
    "OrderKind",
    "StatisticsTotals",
    "ItemTotal",
    "TableStatistics",
    "TableItemTotal",
    "AppSetting",
    "WaiterAssignment",
    "FcmToken",
    "MenuItem",
    "GLASSES_CATEGORY",
    "GLASS_ITEM_IDS",
    "GLASS_ITEM_NAMES",
]

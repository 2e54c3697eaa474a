"""Snapshots pushed to WebSocket subscribers after every mutation."""

import logging
from typing import Any, Dict, Iterable, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from festbar.services.order_lifecycle_service import VIEW_BAR, VIEW_WAITER, OrderLifecycleService
from festbar.services.settings_service import SettingsService
from festbar.services.statistics_service import StatisticsService
from festbar.services.websocket_service import Channel, manager, snapshot_message

logger = logging.getLogger(__name__)


def build_snapshot(channel: str, db: Session) -> Optional[Dict[str, Any]]:
    """Current state of one channel's subtree, ready for ``send_json``."""
    if channel == Channel.BAR.value:
        data = OrderLifecycleService(db).board(VIEW_BAR).model_dump(mode="json")
    elif channel == Channel.ORDERS.value:
        data = OrderLifecycleService(db).board(VIEW_WAITER).model_dump(mode="json")
    elif channel == Channel.STATISTICS.value:
        data = StatisticsService(db).snapshot().model_dump(mode="json")
    elif channel == Channel.BROADCAST.value:
        broadcast = SettingsService(db).get_broadcast()
        data = broadcast.model_dump(mode="json") if broadcast else None
    elif channel == Channel.SETTINGS.value:
        service = SettingsService(db)
        data = {
            "settings": service.to_response(service.get_venue_settings()).model_dump(mode="json"),
            "system": service.get_system_flags().model_dump(mode="json"),
        }
    else:
        return None
    return snapshot_message(channel, data)


def publish(background_tasks: BackgroundTasks, db: Session, channels: Iterable[Channel]) -> None:
    """Queue fresh snapshots for every channel that has subscribers.

    Snapshots are built now, inside the request's session, and sent after
    the response.
    """
    for channel in channels:
        if not manager.has_subscribers(channel.value):
            continue
        message = build_snapshot(channel.value, db)
        background_tasks.add_task(manager.broadcast, message, channel.value)


def publish_orders(background_tasks: BackgroundTasks, db: Session) -> None:
    publish(background_tasks, db, (Channel.BAR, Channel.ORDERS))


def publish_completion(background_tasks: BackgroundTasks, db: Session) -> None:
    """Hide and remove change the boards and, usually, the statistics."""
    publish(background_tasks, db, (Channel.BAR, Channel.ORDERS, Channel.STATISTICS))

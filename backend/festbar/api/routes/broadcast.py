"""Broadcast banner routes."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from festbar.core.pin_gate import require_pin
from festbar.db.session import DbSession
from festbar.schemas.settings import Broadcast, BroadcastCreate, BroadcastRead
from festbar.services.live_updates import publish
from festbar.services.settings_service import SettingsService
from festbar.services.websocket_service import Channel

router = APIRouter()


@router.get("/", response_model=Optional[Broadcast])
def get_broadcast(db: DbSession):
    return SettingsService(db).get_broadcast()


@router.post("/", response_model=Broadcast, status_code=201, dependencies=[Depends(require_pin("broadcast"))])
def send_broadcast(broadcast_data: BroadcastCreate, background_tasks: BackgroundTasks, db: DbSession):
    """Replace the current message with a new one."""
    broadcast = SettingsService(db).send_broadcast(broadcast_data)
    publish(background_tasks, db, (Channel.BROADCAST,))
    return broadcast


@router.post("/read", response_model=Optional[Broadcast])
def mark_broadcast_read(read: BroadcastRead, background_tasks: BackgroundTasks, db: DbSession):
    broadcast = SettingsService(db).mark_broadcast_read(read)
    publish(background_tasks, db, (Channel.BROADCAST,))
    return broadcast


@router.delete("/", dependencies=[Depends(require_pin("broadcast"))])
def clear_broadcast(background_tasks: BackgroundTasks, db: DbSession):
    SettingsService(db).clear_broadcast()
    publish(background_tasks, db, (Channel.BROADCAST,))
    return {"status": "cleared"}

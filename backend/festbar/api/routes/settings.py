"""Venue settings, admin PIN and system flag routes."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from festbar.core.pin_gate import AdminPin, check_pin, require_pin
from festbar.core.rate_limit import limiter
from festbar.db.session import DbSession
from festbar.schemas.settings import (
    PinChange,
    PinReset,
    SystemFlags,
    SystemFlagsUpdate,
    VenueSettingsResponse,
    VenueSettingsUpdate,
)
from festbar.services.live_updates import publish
from festbar.services.settings_service import SettingsService
from festbar.services.websocket_service import Channel, manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=VenueSettingsResponse)
def get_venue_settings(db: DbSession):
    service = SettingsService(db)
    return service.to_response(service.get_venue_settings())


@router.put("/", response_model=VenueSettingsResponse, dependencies=[Depends(require_pin("settings"))])
def update_venue_settings(
    update: VenueSettingsUpdate,
    background_tasks: BackgroundTasks,
    db: DbSession,
):
    """Save the settings document. Omitted fields are kept."""
    service = SettingsService(db)
    was_protected = service.is_action_protected("statistics")
    venue = service.update_venue_settings(update)
    # The auto-hide window changes what every board shows
    publish(background_tasks, db, (Channel.SETTINGS, Channel.BAR, Channel.ORDERS))
    if venue.pin_protection.protected_actions.statistics and not was_protected:
        # Existing subscribers never passed the PIN check
        background_tasks.add_task(manager.close_channel, Channel.STATISTICS.value)
    return service.to_response(venue)


@router.post("/pin")
@limiter.limit("10/minute")
def change_admin_pin(
    request: Request,
    pin_data: PinChange,
    db: DbSession,
    x_admin_pin: AdminPin = None,
):
    """Set the admin PIN. Changing an existing PIN needs the current one."""
    service = SettingsService(db)
    if service.get_venue_settings().pin_protection.admin_pin_hash and not service.verify_admin_pin(x_admin_pin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Current admin PIN required")
    service.set_admin_pin(pin_data.new_pin)
    return {"status": "ok"}


@router.post("/pin/verify")
@limiter.limit("10/minute")
def verify_admin_pin(request: Request, db: DbSession, x_admin_pin: AdminPin = None):
    """Check a PIN entered in a client's PIN dialog."""
    return {"valid": SettingsService(db).verify_admin_pin(x_admin_pin)}


@router.post("/pin/reset")
@limiter.limit("5/minute")
def reset_admin_pin(request: Request, reset: PinReset, db: DbSession):
    """Replace a forgotten PIN using the master password."""
    if not SettingsService(db).reset_admin_pin(reset.master_password, reset.new_pin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid master password")
    return {"status": "ok"}


@router.get("/system", response_model=SystemFlags)
def get_system_flags(db: DbSession):
    return SettingsService(db).get_system_flags()


@router.put("/system", response_model=SystemFlags)
def update_system_flags(
    update: SystemFlagsUpdate,
    background_tasks: BackgroundTasks,
    db: DbSession,
    x_admin_pin: AdminPin = None,
):
    """Shut the venue down or block the order form."""
    service = SettingsService(db)
    if update.shutdown is not None:
        check_pin(service, "system_shutdown", x_admin_pin)
    if update.order_form_disabled is not None:
        check_pin(service, "order_form_toggle", x_admin_pin)

    flags = service.update_system_flags(update)
    publish(background_tasks, db, (Channel.SETTINGS,))
    return flags

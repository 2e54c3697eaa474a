"""Venue settings, system flags, admin PIN and broadcast messages.

All of these are small JSON documents in ``app_settings``. The order board
only reads them; they are written from the settings and admin endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from festbar.core.config import settings as app_config
from festbar.core.security import get_pin_hash, verify_master_password, verify_pin
from festbar.models.settings import AppSetting
from festbar.schemas.settings import (
    Broadcast,
    BroadcastCreate,
    BroadcastRead,
    CounterConfig,
    SystemFlags,
    SystemFlagsUpdate,
    VenueSettings,
    VenueSettingsResponse,
    VenueSettingsUpdate,
)
from festbar.services.alert_phase import effective_auto_hide_minutes

logger = logging.getLogger(__name__)

VENUE_CATEGORY = "venue"
SYSTEM_CATEGORY = "system"
BROADCAST_CATEGORY = "broadcast"


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    # --------------- helper utilities ---------------

    def _get_value(self, category: str, key: str = "default") -> Any:
        """Return the JSON value for a category+key, or None if not found."""
        row = (
            self.db.query(AppSetting)
            .filter(AppSetting.category == category, AppSetting.key == key)
            .first()
        )
        return row.value if row else None

    def _upsert(self, category: str, value: Any, key: str = "default") -> None:
        """Insert or replace a setting row and commit."""
        row = (
            self.db.query(AppSetting)
            .filter(AppSetting.category == category, AppSetting.key == key)
            .first()
        )
        if row:
            row.value = value
        else:
            self.db.add(AppSetting(category=category, key=key, value=value))
        self.db.commit()

    # --------------- venue settings ---------------

    def get_venue_settings(self) -> VenueSettings:
        stored = self._get_value(VENUE_CATEGORY) or {}
        defaults = {"order_auto_hide_minutes": app_config.default_order_auto_hide_minutes}
        return VenueSettings.model_validate({**defaults, **stored})

    def save_venue_settings(self, venue: VenueSettings) -> VenueSettings:
        self._upsert(VENUE_CATEGORY, venue.model_dump(mode="json"))
        return venue

    def update_venue_settings(self, update: VenueSettingsUpdate) -> VenueSettings:
        venue = self.get_venue_settings()
        if update.order_auto_hide_minutes is not None:
            venue.order_auto_hide_minutes = update.order_auto_hide_minutes
        if update.counters is not None:
            venue.counters = update.counters
        if update.protected_actions is not None:
            venue.pin_protection.protected_actions = update.protected_actions
        logger.info("Venue settings updated")
        return self.save_venue_settings(venue)

    def auto_hide_minutes(self) -> float:
        """Auto-hide window as used by the alert classifier."""
        return effective_auto_hide_minutes(self.get_venue_settings().order_auto_hide_minutes)

    def get_counter(self, counter_id: str) -> Optional[CounterConfig]:
        for counter in self.get_venue_settings().counters:
            if counter.id == counter_id:
                return counter
        return None

    @staticmethod
    def to_response(venue: VenueSettings) -> VenueSettingsResponse:
        return VenueSettingsResponse(
            order_auto_hide_minutes=venue.order_auto_hide_minutes,
            effective_auto_hide_minutes=effective_auto_hide_minutes(venue.order_auto_hide_minutes),
            counters=venue.counters,
            protected_actions=venue.pin_protection.protected_actions,
            admin_pin_set=venue.pin_protection.admin_pin_hash is not None,
        )

    # --------------- admin PIN ---------------

    def set_admin_pin(self, new_pin: str) -> None:
        venue = self.get_venue_settings()
        venue.pin_protection.admin_pin_hash = get_pin_hash(new_pin)
        self.save_venue_settings(venue)
        logger.info("Admin PIN changed")

    def verify_admin_pin(self, pin: Optional[str]) -> bool:
        """False when no PIN has been configured yet."""
        stored = self.get_venue_settings().pin_protection.admin_pin_hash
        if not stored or not pin:
            return False
        return verify_pin(pin, stored)

    def reset_admin_pin(self, master_password: str, new_pin: str) -> bool:
        if not verify_master_password(master_password):
            logger.warning("Admin PIN reset rejected: wrong master password")
            return False
        self.set_admin_pin(new_pin)
        return True

    def is_action_protected(self, action: str) -> bool:
        actions = self.get_venue_settings().pin_protection.protected_actions
        return getattr(actions, action, False) is True

    # --------------- system flags ---------------

    def get_system_flags(self) -> SystemFlags:
        return SystemFlags.model_validate(self._get_value(SYSTEM_CATEGORY) or {})

    def update_system_flags(self, update: SystemFlagsUpdate) -> SystemFlags:
        flags = self.get_system_flags()
        if update.shutdown is not None:
            flags.shutdown = update.shutdown
        if update.order_form_disabled is not None:
            flags.order_form_disabled = update.order_form_disabled
        self._upsert(SYSTEM_CATEGORY, flags.model_dump(mode="json"))
        logger.info(f"System flags: shutdown={flags.shutdown} order_form_disabled={flags.order_form_disabled}")
        return flags

    def bump_menu_version(self) -> SystemFlags:
        """Tell every client to reload the menu."""
        flags = self.get_system_flags()
        flags.menu_version = int(datetime.now(timezone.utc).timestamp() * 1000)
        self._upsert(SYSTEM_CATEGORY, flags.model_dump(mode="json"))
        return flags

    # --------------- broadcast ---------------

    def get_broadcast(self) -> Optional[Broadcast]:
        value = self._get_value(BROADCAST_CATEGORY)
        return Broadcast.model_validate(value) if value else None

    def send_broadcast(self, request: BroadcastCreate) -> Broadcast:
        now = datetime.now(timezone.utc)
        broadcast = Broadcast(
            id=f"broadcast-{int(now.timestamp() * 1000)}",
            message=request.message,
            target=request.target,
            timestamp=now,
        )
        self._upsert(BROADCAST_CATEGORY, broadcast.model_dump(mode="json"))
        logger.info(f"Broadcast sent to {request.target}")
        return broadcast

    def mark_broadcast_read(self, read: BroadcastRead) -> Optional[Broadcast]:
        """Add the reader to the matching read list; a no-op without a broadcast."""
        broadcast = self.get_broadcast()
        if broadcast is None:
            return None

        read_by = broadcast.read_by
        if read.table_number is not None and read.table_number not in read_by.tables:
            read_by.tables.append(read.table_number)
        if read.waiter_name and read.waiter_name not in read_by.waiters:
            read_by.waiters.append(read.waiter_name)
        if read.bar_name and read.bar_name not in read_by.bars:
            read_by.bars.append(read.bar_name)

        self._upsert(BROADCAST_CATEGORY, broadcast.model_dump(mode="json"))
        return broadcast

    def clear_broadcast(self) -> None:
        self._upsert(BROADCAST_CATEGORY, None)

"""Admin PIN gate for protected actions."""

import logging
from typing import Annotated, Optional

from fastapi import Header, HTTPException, status

from festbar.db.session import DbSession
from festbar.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

PIN_HEADER = "X-Admin-Pin"

AdminPin = Annotated[Optional[str], Header(alias=PIN_HEADER)]


def check_pin(service: SettingsService, action: str, pin: Optional[str]) -> None:
    """Raise 403 when ``action`` is protected and ``pin`` does not match."""
    if not service.is_action_protected(action):
        return
    if not service.verify_admin_pin(pin):
        logger.warning(f"PIN check failed for protected action {action}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Admin PIN required for {action}",
        )


def require_pin(action: str):
    """Dependency to require the admin PIN when ``action`` is marked protected.

    Unprotected actions pass without a PIN.
    """

    def pin_checker(
        db: DbSession,
        x_admin_pin: AdminPin = None,
    ) -> None:
        check_pin(SettingsService(db), action, x_admin_pin)

    return pin_checker


def require_admin_pin(
    db: DbSession,
    x_admin_pin: AdminPin = None,
) -> None:
    """Dependency that always asks for the PIN, regardless of protected actions."""
    if not SettingsService(db).verify_admin_pin(x_admin_pin):
        logger.warning("Admin PIN check failed")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin PIN required",
        )


"""Alert phase classification for orders on the live board.

The phase is never stored. It is reconstructed from the order's creation
time and the current wall-clock time on every render tick:

    0-1 min   red-blink
    1-2 min   red-solid
    2-4 min   orange
    4 min+    green, until the auto-hide window elapses -> expired

An auto-hide window of 0 means orders never expire.
"""

import enum
from datetime import datetime

from festbar.db.base import as_utc

MIN_AUTO_HIDE_MINUTES = 5
NEVER_EXPIRE = 0


class AlertPhase(str, enum.Enum):
    RED_BLINK = "red-blink"
    RED_SOLID = "red-solid"
    ORANGE = "orange"
    GREEN = "green"
    EXPIRED = "expired"


def effective_auto_hide_minutes(raw_minutes: int | float | None, default: int = 6) -> float:
    """Clamp a configured auto-hide window.

    ``None`` falls back to ``default``; 0 keeps its "never expire" meaning;
    anything else (negative values included) is raised to at least five
    minutes so that an order always passes through green before expiring.
    """
    if raw_minutes is None:
        raw_minutes = default
    if raw_minutes == NEVER_EXPIRE:
        return NEVER_EXPIRE
    return max(raw_minutes, MIN_AUTO_HIDE_MINUTES)


def elapsed_minutes(created_at: datetime, now: datetime) -> float:
    return (as_utc(now) - as_utc(created_at)).total_seconds() / 60


def classify(created_at: datetime, now: datetime, auto_hide_minutes: int | float | None) -> AlertPhase:
    """Map an order's age to its alert phase."""
    minutes = elapsed_minutes(created_at, now)
    auto_hide = effective_auto_hide_minutes(auto_hide_minutes)

    if minutes < 1:
        return AlertPhase.RED_BLINK
    if minutes < 2:
        return AlertPhase.RED_SOLID
    if minutes < 4:
        return AlertPhase.ORANGE
    if auto_hide == NEVER_EXPIRE:
        return AlertPhase.GREEN
    if minutes < auto_hide:
        return AlertPhase.GREEN
    return AlertPhase.EXPIRED


def is_expired(created_at: datetime, now: datetime, auto_hide_minutes: int | float | None) -> bool:
    return classify(created_at, now, auto_hide_minutes) is AlertPhase.EXPIRED

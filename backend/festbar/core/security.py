"""Security utilities: admin PIN hashing and master password check."""

from __future__ import annotations

import logging
import secrets

import bcrypt

from festbar.core.config import settings

logger = logging.getLogger(__name__)


def verify_pin(plain_pin: str, hashed_pin: str) -> bool:
    """Verify a plain PIN against a hash.

    Uses bcrypt's built-in timing-safe comparison.
    """
    try:
        return bcrypt.checkpw(
            plain_pin.encode('utf-8'),
            hashed_pin.encode('utf-8')
        )
    except ValueError as e:
        logger.warning(f"PIN verification error: {e}")
        return False


def get_pin_hash(pin: str) -> str:
    """Hash a PIN code using bcrypt."""
    return bcrypt.hashpw(
        pin.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def verify_master_password(password: str) -> bool:
    return secrets.compare_digest(password.encode('utf-8'), settings.master_password.encode('utf-8'))

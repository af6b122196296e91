"""
CMS password verification against a bcrypt hash.
"""
import logging
from typing import Optional

import bcrypt

from catalog.config import settings

logger = logging.getLogger(__name__)


def hash_admin_password(password: str, rounds: int = 12) -> str:
    """Produce a bcrypt hash suitable for ADMIN_PASSWORD_HASH."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_admin_password(password: str, password_hash: Optional[str] = None) -> bool:
    """
    Check a password against the configured admin hash.

    Raises:
        ValueError: If ADMIN_PASSWORD_HASH is not configured
    """
    stored_hash = password_hash if password_hash is not None else settings.ADMIN_PASSWORD_HASH
    if not stored_hash:
        raise ValueError("ADMIN_PASSWORD_HASH is not configured")

    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError:
        logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        raise ValueError("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")

from __future__ import annotations

import hmac
import logging

from fastapi import Header, HTTPException

from focuslog.settings import get_settings

logger = logging.getLogger(__name__)


def normalize_owner_id(email: str | None) -> str:
    """Entries are owned by the lower-cased account email."""
    return (email or "").strip().lower()


async def current_owner_id(
    x_user_email: str | None = Header(default=None, alias="X-User-Email"),
    x_backend_token: str | None = Header(default=None, alias="X-Backend-Token"),
) -> str:
    settings = get_settings()
    if not x_backend_token or not hmac.compare_digest(x_backend_token, settings.backend_session_secret):
        raise HTTPException(status_code=401, detail="Invalid backend token")
    owner_id = normalize_owner_id(x_user_email)
    if not owner_id:
        raise HTTPException(status_code=401, detail="Missing user email")
    if settings.allowed_emails and owner_id not in settings.allowed_emails:
        logger.warning("Rejected journal access for %s", owner_id)
        raise HTTPException(status_code=403, detail="User not allowed")
    return owner_id

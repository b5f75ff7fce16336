from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from focuslog.settings import get_settings

logger = logging.getLogger(__name__)


def app_zone() -> tzinfo:
    tz_name = get_settings().app_timezone
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown APP_TIMEZONE %r, falling back to UTC", tz_name)
        return timezone.utc


def get_now() -> datetime:
    """Current time in the application timezone; overridden in tests."""
    return datetime.now(app_zone())

"""Shared fixtures for focuslog tests."""

from datetime import datetime, timedelta
from itertools import count

import pytest

from focuslog.models import DecisionCategory, DecisionEntry, FocusEntry, FocusStatus
from focuslog.settings import reset_settings

# Monday afternoon.
NOW = datetime(2026, 10, 19, 15, 0)

_ids = count(1)


def make_focus(days_ago=0, status=FocusStatus.ACHIEVED, mood="calm", title=None, hours=0, now=NOW):
    entry_id = f"f{next(_ids)}"
    return FocusEntry(
        id=entry_id,
        owner_id="ana@example.com",
        title=title or f"Focus {entry_id}",
        status=status,
        mood=mood,
        notes="",
        date=now - timedelta(days=days_ago, hours=hours),
    )


def make_decision(days_ago=0, category=DecisionCategory.GENERAL, title=None, now=NOW):
    entry_id = f"d{next(_ids)}"
    return DecisionEntry(
        id=entry_id,
        owner_id="ana@example.com",
        title=title or f"Decision {entry_id}",
        reason="",
        category=category,
        date=now - timedelta(days=days_ago),
    )


@pytest.fixture(autouse=True)
def app_env(tmp_path, monkeypatch):
    """Minimal environment so get_settings() can load."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'focuslog.db'}")
    monkeypatch.setenv("BACKEND_SESSION_SECRET", "test-secret")
    monkeypatch.delenv("ALLOWED_EMAILS", raising=False)
    monkeypatch.delenv("APP_TIMEZONE", raising=False)
    reset_settings()
    yield
    reset_settings()

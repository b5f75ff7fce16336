from __future__ import annotations

import logging

from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from focuslog.db import get_engine

logger = logging.getLogger(__name__)

FOCUS_TABLE = "focus_entries"
DECISIONS_TABLE = "decision_entries"


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {FOCUS_TABLE} (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'PENDING',
                    mood TEXT NOT NULL DEFAULT '',
                    notes TEXT NOT NULL DEFAULT '',
                    entry_date TEXT NOT NULL,
                    image TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {DECISIONS_TABLE} (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    reason TEXT NOT NULL DEFAULT '',
                    category TEXT NOT NULL DEFAULT 'GENERAL',
                    entry_date TEXT NOT NULL,
                    image TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
                """
            )
        )

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except SQLAlchemyError:
            logger.warning("Index creation skipped: %s", index_sql)

    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{FOCUS_TABLE}_owner_date "
        f"ON {FOCUS_TABLE} (owner_id, entry_date)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{DECISIONS_TABLE}_owner_date "
        f"ON {DECISIONS_TABLE} (owner_id, entry_date)"
    )

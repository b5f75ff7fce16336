from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from uuid import uuid4

from sqlalchemy import text as sql_text

from focuslog.clock import app_zone
from focuslog.db import get_sessionmaker
from focuslog.db_init import FOCUS_TABLE, DECISIONS_TABLE
from focuslog.models import FocusStatus, DecisionCategory

FOCUS_COLUMNS = [
    "id",
    "owner_id",
    "title",
    "status",
    "mood",
    "notes",
    "entry_date",
    "image",
    "created_at",
    "updated_at",
]

DECISION_COLUMNS = [
    "id",
    "owner_id",
    "title",
    "reason",
    "category",
    "entry_date",
    "image",
    "created_at",
    "updated_at",
]

FOCUS_SORT_COLUMNS = {
    "date": "entry_date",
    "title": "title",
    "status": "status",
    "mood": "mood",
    "created_at": "created_at",
}

DECISION_SORT_COLUMNS = {
    "date": "entry_date",
    "title": "title",
    "category": "category",
    "created_at": "created_at",
}

FOCUS_UPDATABLE = {"title", "status", "mood", "notes", "entry_date", "image"}
DECISION_UPDATABLE = {"title", "reason", "category", "entry_date", "image"}


def _new_id() -> str:
    return uuid4().hex


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _to_storage_timestamp(value) -> str:
    if value is None or value == "":
        return _utc_now_iso()
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=app_zone())
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def _clean_title(value) -> str:
    title = " ".join(str(value or "").split()).strip()
    if not title:
        raise ValueError("Title cannot be empty")
    return title[:200]


def _normalize_status(value) -> str:
    return FocusStatus(getattr(value, "value", value) or FocusStatus.PENDING.value).value


def _normalize_category(value) -> str:
    return DecisionCategory(getattr(value, "value", value) or DecisionCategory.GENERAL.value).value


NON_NULLABLE = {"status", "category", "entry_date"}


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _normalize_field(key: str, value):
    if value is None and key in NON_NULLABLE:
        raise ValueError(f"{key.replace('entry_', '')} cannot be null")
    if key == "title":
        return _clean_title(value)
    if key == "status":
        return _normalize_status(value)
    if key == "category":
        return _normalize_category(value)
    if key == "entry_date":
        return _to_storage_timestamp(value)
    if key in {"mood", "notes", "reason"}:
        return str(value or "").strip()
    return value


def _sort_clause(sort_map: dict, sort_by: str | None, sort_order: str | None) -> str:
    column = sort_map.get(sort_by or "date", "entry_date")
    direction = "ASC" if str(sort_order or "").lower() == "asc" else "DESC"
    return f"{column} {direction}, id {direction}"


def _pagination(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


async def _list_rows(
    table: str,
    columns: list[str],
    owner_id: str,
    start_iso: str | None = None,
    end_iso: str | None = None,
    order: str = "DESC",
    limit: int | None = None,
) -> list[dict]:
    clauses = ["owner_id = :owner_id"]
    params: dict = {"owner_id": owner_id}
    if start_iso is not None:
        clauses.append("entry_date >= :start_date")
        params["start_date"] = start_iso
    if end_iso is not None:
        clauses.append("entry_date <= :end_date")
        params["end_date"] = end_iso
    sql = (
        f"SELECT {', '.join(columns)} FROM {table} "
        f"WHERE {' AND '.join(clauses)} "
        f"ORDER BY entry_date {order}"
    )
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(sql_text(sql), params)).mappings().all()
    return [dict(row) for row in rows]


async def _get_row(table: str, columns: list[str], owner_id: str, entry_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {', '.join(columns)} FROM {table} WHERE id = :id AND owner_id = :owner_id"),
            {"id": entry_id, "owner_id": owner_id},
        )).mappings().fetchone()
    return dict(row) if row else {}


async def _insert_row(table: str, record: dict) -> None:
    columns = list(record.keys())
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"INSERT INTO {table} ({', '.join(columns)}) "
                f"VALUES ({', '.join(f':{col}' for col in columns)})"
            ),
            record,
        )
        await session.commit()


async def _update_row(table: str, columns: list[str], allowed: set, owner_id: str, entry_id: str, patch: dict) -> dict:
    updates = []
    params = {"id": entry_id, "owner_id": owner_id}
    for key, value in (patch or {}).items():
        if key not in allowed:
            continue
        updates.append(f"{key} = :{key}")
        params[key] = _normalize_field(key, value)
    if not updates:
        return await _get_row(table, columns, owner_id, entry_id)
    updates.append("updated_at = :updated_at")
    params["updated_at"] = _utc_now_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"UPDATE {table} SET {', '.join(updates)} WHERE id = :id AND owner_id = :owner_id"),
            params,
        )
        await session.commit()
    return await _get_row(table, columns, owner_id, entry_id)


async def _delete_row(table: str, owner_id: str, entry_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {table} WHERE id = :id AND owner_id = :owner_id"),
            {"id": entry_id, "owner_id": owner_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def _archive(
    table: str,
    columns: list[str],
    sort_map: dict,
    owner_id: str,
    filters: dict,
    search: str | None,
    search_columns: tuple[str, ...],
    page: int,
    limit: int,
    sort_by: str | None,
    sort_order: str | None,
) -> dict:
    page = max(int(page or 1), 1)
    limit = max(int(limit or 10), 1)
    clauses = ["owner_id = :owner_id"]
    params: dict = {"owner_id": owner_id}
    for key, value in filters.items():
        if value in (None, ""):
            continue
        if key == "mood":
            clauses.append("LOWER(mood) LIKE :mood ESCAPE '\\'")
            params["mood"] = _like_pattern(str(value).strip().lower())
        else:
            clauses.append(f"{key} = :{key}")
            params[key] = getattr(value, "value", value)
    search = (search or "").strip()
    if search:
        clauses.append("(" + " OR ".join(f"LOWER({col}) LIKE :search ESCAPE '\\'" for col in search_columns) + ")")
        params["search"] = _like_pattern(search.lower())
    where = " AND ".join(clauses)
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        total = (await session.execute(
            sql_text(f"SELECT COUNT(*) FROM {table} WHERE {where}"),
            params,
        )).scalar_one()
        rows = (await session.execute(
            sql_text(
                f"SELECT {', '.join(columns)} FROM {table} WHERE {where} "
                f"ORDER BY {_sort_clause(sort_map, sort_by, sort_order)} "
                "LIMIT :limit OFFSET :offset"
            ),
            {**params, "limit": limit, "offset": (page - 1) * limit},
        )).mappings().all()
    return {
        "items": [dict(row) for row in rows],
        "pagination": _pagination(page, limit, int(total or 0)),
    }


# ---- focus entries ----


async def list_focus_range(owner_id: str, start, end) -> list[dict]:
    return await _list_rows(
        FOCUS_TABLE,
        FOCUS_COLUMNS,
        owner_id,
        start_iso=_to_storage_timestamp(start),
        end_iso=_to_storage_timestamp(end),
        order="ASC",
    )


async def list_focus_entries(owner_id: str) -> list[dict]:
    return await _list_rows(FOCUS_TABLE, FOCUS_COLUMNS, owner_id)


async def list_recent_focus(owner_id: str, limit: int) -> list[dict]:
    return await _list_rows(FOCUS_TABLE, FOCUS_COLUMNS, owner_id, limit=limit)


async def get_focus(owner_id: str, entry_id: str) -> dict:
    return await _get_row(FOCUS_TABLE, FOCUS_COLUMNS, owner_id, entry_id)


async def create_focus(owner_id: str, payload: dict) -> dict:
    now_iso = _utc_now_iso()
    record = {
        "id": _new_id(),
        "owner_id": owner_id,
        "title": _clean_title(payload.get("title")),
        "status": _normalize_status(payload.get("status")),
        "mood": _normalize_field("mood", payload.get("mood")),
        "notes": _normalize_field("notes", payload.get("notes")),
        "entry_date": _to_storage_timestamp(payload.get("date")),
        "image": payload.get("image"),
        "created_at": now_iso,
        "updated_at": now_iso,
    }
    await _insert_row(FOCUS_TABLE, record)
    return record


async def update_focus(owner_id: str, entry_id: str, patch: dict) -> dict:
    clean = dict(patch or {})
    if "date" in clean:
        clean["entry_date"] = clean.pop("date")
    return await _update_row(FOCUS_TABLE, FOCUS_COLUMNS, FOCUS_UPDATABLE, owner_id, entry_id, clean)


async def delete_focus(owner_id: str, entry_id: str) -> bool:
    return await _delete_row(FOCUS_TABLE, owner_id, entry_id)


async def archive_focus(
    owner_id: str,
    status: str | None = None,
    mood: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str | None = "date",
    sort_order: str | None = "desc",
) -> dict:
    return await _archive(
        FOCUS_TABLE,
        FOCUS_COLUMNS,
        FOCUS_SORT_COLUMNS,
        owner_id,
        {"status": status, "mood": mood},
        search,
        ("title", "notes"),
        page,
        limit,
        sort_by,
        sort_order,
    )


async def focus_filter_options(owner_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(f"SELECT DISTINCT mood FROM {FOCUS_TABLE} WHERE owner_id = :owner_id ORDER BY mood"),
            {"owner_id": owner_id},
        )).all()
    return {
        "statuses": [status.value for status in FocusStatus],
        "moods": [row[0] for row in rows if row[0]],
    }


# ---- decision entries ----


async def list_decision_range(owner_id: str, start, end) -> list[dict]:
    return await _list_rows(
        DECISIONS_TABLE,
        DECISION_COLUMNS,
        owner_id,
        start_iso=_to_storage_timestamp(start),
        end_iso=_to_storage_timestamp(end),
        order="ASC",
    )


async def list_decision_entries(owner_id: str) -> list[dict]:
    return await _list_rows(DECISIONS_TABLE, DECISION_COLUMNS, owner_id)


async def list_recent_decisions(owner_id: str, limit: int) -> list[dict]:
    return await _list_rows(DECISIONS_TABLE, DECISION_COLUMNS, owner_id, limit=limit)


async def get_decision(owner_id: str, entry_id: str) -> dict:
    return await _get_row(DECISIONS_TABLE, DECISION_COLUMNS, owner_id, entry_id)


async def create_decision(owner_id: str, payload: dict) -> dict:
    now_iso = _utc_now_iso()
    record = {
        "id": _new_id(),
        "owner_id": owner_id,
        "title": _clean_title(payload.get("title")),
        "reason": _normalize_field("reason", payload.get("reason")),
        "category": _normalize_category(payload.get("category")),
        "entry_date": _to_storage_timestamp(payload.get("date")),
        "image": payload.get("image"),
        "created_at": now_iso,
        "updated_at": now_iso,
    }
    await _insert_row(DECISIONS_TABLE, record)
    return record


async def update_decision(owner_id: str, entry_id: str, patch: dict) -> dict:
    clean = dict(patch or {})
    if "date" in clean:
        clean["entry_date"] = clean.pop("date")
    return await _update_row(DECISIONS_TABLE, DECISION_COLUMNS, DECISION_UPDATABLE, owner_id, entry_id, clean)


async def delete_decision(owner_id: str, entry_id: str) -> bool:
    return await _delete_row(DECISIONS_TABLE, owner_id, entry_id)


async def archive_decisions(
    owner_id: str,
    category: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str | None = "date",
    sort_order: str | None = "desc",
) -> dict:
    return await _archive(
        DECISIONS_TABLE,
        DECISION_COLUMNS,
        DECISION_SORT_COLUMNS,
        owner_id,
        {"category": category},
        search,
        ("title", "reason"),
        page,
        limit,
        sort_by,
        sort_order,
    )

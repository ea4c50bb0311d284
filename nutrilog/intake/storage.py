# -*- coding: utf-8 -*-
"""Intake aggregation — SQLite storage.

One row per ``(user_id, date)`` in ``daily_intakes`` / ``weekly_intakes``. Every
write is a single upsert on that key with the arithmetic done in SQL, and the
row is probed and read back inside the same ``BEGIN IMMEDIATE`` transaction.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from datetime import date as _date
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..app_db import db_conn
from ..config import settings
from .models import (
    NUTRIENT_FIELDS,
    SCOPE_TABLES,
    IntakeChangeResponse,
    IntakeRecord,
    IntakeStats,
    IntakeStatus,
)

logger = logging.getLogger(__name__)


class IntakeRequestError(ValueError):
    """Invalid scope, date or nutrient value; raised before any datastore access."""


class IntakeStorageError(RuntimeError):
    """The datastore failed while reading or writing intake rows."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def normalize_scope(scope: Any) -> str:
    key = str(scope or "").strip().lower()
    if key not in SCOPE_TABLES:
        allowed = ", ".join(SCOPE_TABLES)
        if not key:
            raise IntakeRequestError(f"scope is required (one of: {allowed})")
        raise IntakeRequestError(f"Invalid scope {scope!r}; must be one of: {allowed}")
    return key


def normalize_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, _date):
        return value.isoformat()
    text = str(value or "").strip()
    if not text:
        raise IntakeRequestError("date is required")
    # Accept a full ISO timestamp and keep its date part.
    if len(text) > 10 and text[10] in ("T", " "):
        text = text[:10]
    try:
        return _date.fromisoformat(text).isoformat()
    except ValueError as exc:
        raise IntakeRequestError(f"Invalid date {value!r}; expected YYYY-MM-DD") from exc


def normalize_nutrients(values: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """Coerce every nutrient field to a finite, non-negative float (absent -> 0)."""
    values = values or {}
    out: Dict[str, float] = {}
    for name in NUTRIENT_FIELDS:
        raw = values.get(name)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            out[name] = 0.0
            continue
        if isinstance(raw, bool):
            raise IntakeRequestError(f"{name} must be a number, got {raw!r}")
        try:
            number = float(raw)
        except (TypeError, ValueError) as exc:
            raise IntakeRequestError(f"{name} must be a number, got {raw!r}") from exc
        if not math.isfinite(number):
            raise IntakeRequestError(f"{name} must be a finite number")
        if number < 0:
            raise IntakeRequestError(f"{name} must not be negative")
        out[name] = number
    return out


def _normalize_user_id(user_id: Any) -> str:
    uid = str(user_id or "").strip()
    if not uid:
        raise IntakeRequestError("user_id is required")
    return uid


_COLUMNS = ", ".join(NUTRIENT_FIELDS)


def _upsert_sql(table: str, *, values: str, updates: str) -> str:
    return f"""
        INSERT INTO {table} (user_id, date, {_COLUMNS}, created_at, updated_at)
        VALUES (:user_id, :date, {values}, :now, :now)
        ON CONFLICT(user_id, date) DO UPDATE SET
            {updates},
            updated_at = excluded.updated_at
    """


def _increment_sql(table: str) -> str:
    return _upsert_sql(
        table,
        values=", ".join(f":{f}" for f in NUTRIENT_FIELDS),
        updates=",\n            ".join(f"{f} = {table}.{f} + excluded.{f}" for f in NUTRIENT_FIELDS),
    )


def _overwrite_sql(table: str) -> str:
    return _upsert_sql(
        table,
        values=", ".join(f":{f}" for f in NUTRIENT_FIELDS),
        updates=",\n            ".join(f"{f} = excluded.{f}" for f in NUTRIENT_FIELDS),
    )


def _decrement_sql(table: str) -> str:
    return _upsert_sql(
        table,
        values=", ".join(f"MAX(0, 0 - :{f})" for f in NUTRIENT_FIELDS),
        updates=",\n            ".join(f"{f} = MAX(0, {table}.{f} - :{f})" for f in NUTRIENT_FIELDS),
    )


def _fetch_row(conn: sqlite3.Connection, table: str, user_id: str, day: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        f"SELECT * FROM {table} WHERE user_id = ? AND date = ?",
        (user_id, day),
    ).fetchone()


def _row_to_record(row: Mapping[str, Any], scope: str) -> IntakeRecord:
    return IntakeRecord(
        id=row["id"],
        user_id=row["user_id"],
        scope=scope,
        date=row["date"],
        calories=float(row["calories"] or 0.0),
        protein=float(row["protein"] or 0.0),
        carbs=float(row["carbs"] or 0.0),
        fats=float(row["fats"] or 0.0),
        fiber=float(row["fiber"] or 0.0),
        water=float(row["water"] or 0.0),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _write(
    action: str,
    build_sql: Callable[[str], str],
    *,
    user_id: Any,
    scope: Any,
    date: Any,
    values: Optional[Mapping[str, Any]],
    db_path: Path | None,
) -> Tuple[bool, IntakeRecord]:
    uid = _normalize_user_id(user_id)
    scope_key = normalize_scope(scope)
    day = normalize_date(date)
    amounts = normalize_nutrients(values)
    table = SCOPE_TABLES[scope_key]
    params: Dict[str, Any] = {"user_id": uid, "date": day, "now": _utc_now(), **amounts}

    try:
        with db_conn(db_path or settings.db_path, immediate=True, timeout=settings.db_timeout) as conn:
            existed = _fetch_row(conn, table, uid, day) is not None
            conn.execute(build_sql(table), params)
            row = _fetch_row(conn, table, uid, day)
            # Raising here skips the commit, so an overflowing sum is never stored.
            for name in NUTRIENT_FIELDS:
                if row is not None and not math.isfinite(float(row[name] or 0.0)):
                    raise IntakeRequestError(f"{name} would exceed the largest storable value")
    except sqlite3.Error as exc:
        logger.exception("Failed to %s intake (user=%s scope=%s date=%s)", action, uid, scope_key, day)
        raise IntakeStorageError(f"Failed to {action} intake") from exc

    if row is None:
        raise IntakeStorageError(f"Failed to {action} intake")
    logger.info("Intake %s: user=%s scope=%s date=%s existed=%s", action, uid, scope_key, day, existed)
    return existed, _row_to_record(row, scope_key)


def apply_increment(
    user_id: str,
    *,
    scope: str,
    date: Any,
    deltas: Optional[Mapping[str, Any]] = None,
    db_path: Path | None = None,
) -> IntakeChangeResponse:
    """Add ``deltas`` to the row for the key, creating it from a zero baseline."""
    existed, record = _write(
        "add", _increment_sql, user_id=user_id, scope=scope, date=date, values=deltas, db_path=db_path
    )
    status = IntakeStatus.updated if existed else IntakeStatus.created
    return IntakeChangeResponse(status=status, intake=record)


def apply_overwrite(
    user_id: str,
    *,
    scope: str,
    date: Any,
    values: Optional[Mapping[str, Any]] = None,
    db_path: Path | None = None,
) -> IntakeChangeResponse:
    """Replace every nutrient field; fields missing from ``values`` become 0."""
    _, record = _write(
        "edit", _overwrite_sql, user_id=user_id, scope=scope, date=date, values=values, db_path=db_path
    )
    return IntakeChangeResponse(status=IntakeStatus.upserted, intake=record)


def apply_decrement(
    user_id: str,
    *,
    scope: str,
    date: Any,
    deltas: Optional[Mapping[str, Any]] = None,
    db_path: Path | None = None,
) -> IntakeChangeResponse:
    """Subtract ``deltas`` clamping at zero. An absent key becomes an all-zero row."""
    _, record = _write(
        "remove", _decrement_sql, user_id=user_id, scope=scope, date=date, values=deltas, db_path=db_path
    )
    return IntakeChangeResponse(status=IntakeStatus.updated, intake=record)


def list_intakes(
    user_id: str,
    *,
    scope: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    db_path: Path | None = None,
) -> List[IntakeRecord]:
    scope_key = normalize_scope(scope)
    table = SCOPE_TABLES[scope_key]
    sql = f"SELECT * FROM {table} WHERE user_id = ?"
    params: List[Any] = [user_id]
    if start:
        sql += " AND date >= ?"
        params.append(normalize_date(start))
    if end:
        sql += " AND date <= ?"
        params.append(normalize_date(end))
    sql += " ORDER BY date DESC"

    try:
        with db_conn(db_path or settings.db_path, timeout=settings.db_timeout) as conn:
            rows = conn.execute(sql, params).fetchall()
    except sqlite3.Error as exc:
        logger.exception("Failed to list intake (user=%s scope=%s)", user_id, scope_key)
        raise IntakeStorageError("Failed to fetch intake records") from exc
    return [_row_to_record(r, scope_key) for r in rows]


def get_intake(
    user_id: str,
    *,
    scope: str,
    date: Any,
    db_path: Path | None = None,
) -> Optional[IntakeRecord]:
    scope_key = normalize_scope(scope)
    day = normalize_date(date)
    try:
        with db_conn(db_path or settings.db_path, timeout=settings.db_timeout) as conn:
            row = _fetch_row(conn, SCOPE_TABLES[scope_key], user_id, day)
    except sqlite3.Error as exc:
        logger.exception("Failed to fetch intake (user=%s scope=%s date=%s)", user_id, scope_key, day)
        raise IntakeStorageError("Failed to fetch intake record") from exc
    return _row_to_record(row, scope_key) if row else None


def delete_intake(
    user_id: str,
    *,
    scope: str,
    date: Any,
    db_path: Path | None = None,
) -> Optional[IntakeRecord]:
    """Delete the row for the key and return it, or None when there was none."""
    scope_key = normalize_scope(scope)
    day = normalize_date(date)
    table = SCOPE_TABLES[scope_key]
    try:
        with db_conn(db_path or settings.db_path, immediate=True, timeout=settings.db_timeout) as conn:
            row = _fetch_row(conn, table, user_id, day)
            if row is not None:
                conn.execute(f"DELETE FROM {table} WHERE id = ?", (row["id"],))
    except sqlite3.Error as exc:
        logger.exception("Failed to delete intake (user=%s scope=%s date=%s)", user_id, scope_key, day)
        raise IntakeStorageError("Failed to delete intake record") from exc
    return _row_to_record(row, scope_key) if row else None


def compute_stats(
    user_id: str,
    *,
    scope: str,
    db_path: Path | None = None,
) -> IntakeStats:
    records = list_intakes(user_id, scope=scope, db_path=db_path)
    if not records:
        return IntakeStats()

    count = len(records)
    averages = {
        f"average_{name}": round(sum(getattr(r, name) for r in records) / count, 2)
        for name in NUTRIENT_FIELDS
    }
    # list_intakes orders newest date first.
    return IntakeStats(total_records=count, latest_entry=records[0], **averages)

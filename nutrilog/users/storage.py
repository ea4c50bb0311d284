# -*- coding: utf-8 -*-
"""Users — DB storage helpers."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from fastapi import HTTPException

from ..app_db import db_conn
from ..config import settings
from .models import USER_FIELDS


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _only_user_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k in USER_FIELDS}


def _execute_user_write(conn: sqlite3.Connection, sql: str, params: Mapping[str, Any]) -> sqlite3.Cursor:
    try:
        return conn.execute(sql, params)
    except sqlite3.IntegrityError as exc:
        if "users.username" in str(exc):
            # Another writer took the name after the caller checked it.
            raise HTTPException(status_code=409, detail="Username already taken") from exc
        raise


def list_users(*, db_path: Path | None = None) -> List[Dict[str, Any]]:
    with db_conn(db_path or settings.db_path) as conn:
        rows = conn.execute("SELECT * FROM users ORDER BY created_at ASC").fetchall()
        return [dict(r) for r in rows]


def search_users(
    *,
    q: Optional[str] = None,
    goal: Optional[str] = None,
    min_age: Optional[int] = None,
    max_age: Optional[int] = None,
    db_path: Path | None = None,
) -> List[Dict[str, Any]]:
    clauses: List[str] = []
    params: List[Any] = []
    if q:
        clauses.append("(username LIKE ? OR goals LIKE ?)")
        params.extend([f"%{q}%", f"%{q}%"])
    if goal:
        clauses.append("goals LIKE ?")
        params.append(f"%{goal}%")
    if min_age is not None:
        clauses.append("age >= ?")
        params.append(min_age)
    if max_age is not None:
        clauses.append("age <= ?")
        params.append(max_age)

    sql = "SELECT * FROM users"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at ASC"
    with db_conn(db_path or settings.db_path) as conn:
        rows = conn.execute(sql, params).fetchall()
        return [dict(r) for r in rows]


def get_user_by_id(user_id: str, *, db_path: Path | None = None) -> Optional[Dict[str, Any]]:
    with db_conn(db_path or settings.db_path) as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None


def get_user_by_username(username: str, *, db_path: Path | None = None) -> Optional[Dict[str, Any]]:
    with db_conn(db_path or settings.db_path) as conn:
        row = conn.execute("SELECT * FROM users WHERE username = ?", (username.strip(),)).fetchone()
        return dict(row) if row else None


def create_user(fields: Mapping[str, Any], *, db_path: Path | None = None) -> Dict[str, Any]:
    data = _only_user_fields(fields)
    data["username"] = str(data["username"]).strip()
    now = _utc_now()
    row = {"id": str(uuid4()), **data, "created_at": now, "updated_at": now}
    columns = ", ".join(row)
    placeholders = ", ".join(f":{k}" for k in row)
    with db_conn(db_path or settings.db_path) as conn:
        _execute_user_write(conn, f"INSERT INTO users ({columns}) VALUES ({placeholders})", row)
        created = conn.execute("SELECT * FROM users WHERE id = ?", (row["id"],)).fetchone()
        return dict(created)


def update_user(user_id: str, fields: Mapping[str, Any], *, db_path: Path | None = None) -> Optional[Dict[str, Any]]:
    """Set the given columns; returns the updated row or None if the user is unknown."""
    data = _only_user_fields(fields)
    if "username" in data and data["username"] is not None:
        data["username"] = str(data["username"]).strip()
    data["updated_at"] = _utc_now()
    assignments = ", ".join(f"{k} = :{k}" for k in data)
    with db_conn(db_path or settings.db_path) as conn:
        cur = _execute_user_write(conn, f"UPDATE users SET {assignments} WHERE id = :id", {**data, "id": user_id})
        if cur.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row)


def delete_user(user_id: str, *, db_path: Path | None = None) -> Optional[Dict[str, Any]]:
    with db_conn(db_path or settings.db_path) as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if not row:
            return None
        conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        return dict(row)

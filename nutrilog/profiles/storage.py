# -*- coding: utf-8 -*-
"""Profiles — DB storage helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..app_db import db_conn
from ..config import settings
from .models import PROFILE_FIELDS


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def list_profiles(*, db_path: Path | None = None) -> List[Dict[str, Any]]:
    with db_conn(db_path or settings.db_path) as conn:
        rows = conn.execute("SELECT * FROM profiles ORDER BY created_at ASC").fetchall()
        return [dict(r) for r in rows]


def get_profile(user_id: str, *, db_path: Path | None = None) -> Optional[Dict[str, Any]]:
    with db_conn(db_path or settings.db_path) as conn:
        row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        return dict(row) if row else None


def upsert_profile(user_id: str, fields: Mapping[str, Any], *, db_path: Path | None = None) -> Dict[str, Any]:
    """Insert the profile or overwrite the given columns; created_at survives updates."""
    data = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
    now = _utc_now()
    row = {"user_id": user_id, **data, "created_at": now, "updated_at": now}
    columns = ", ".join(row)
    placeholders = ", ".join(f":{k}" for k in row)
    updates = ", ".join(f"{k} = excluded.{k}" for k in [*data, "updated_at"])
    with db_conn(db_path or settings.db_path) as conn:
        conn.execute(
            f"""
            INSERT INTO profiles ({columns}) VALUES ({placeholders})
            ON CONFLICT(user_id) DO UPDATE SET {updates}
            """,
            row,
        )
        saved = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        return dict(saved)


def update_profile(user_id: str, fields: Mapping[str, Any], *, db_path: Path | None = None) -> Optional[Dict[str, Any]]:
    data = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
    data["updated_at"] = _utc_now()
    assignments = ", ".join(f"{k} = :{k}" for k in data)
    with db_conn(db_path or settings.db_path) as conn:
        cur = conn.execute(f"UPDATE profiles SET {assignments} WHERE user_id = :user_id", {**data, "user_id": user_id})
        if cur.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        return dict(row)

# -*- coding: utf-8 -*-
"""App database (users/profiles/intakes) — SQLite helpers."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

INTAKE_TABLES = ("daily_intakes", "weekly_intakes")


def connect(db_path: Path, timeout: float = 30.0) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=timeout, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def init_app_db(db_path: Path) -> None:
    conn = connect(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                username TEXT NOT NULL UNIQUE,
                age INTEGER,
                weight REAL,
                height REAL,
                body_fat_percentage REAL,
                gender TEXT,
                goals TEXT,
                allergies TEXT,
                conditions TEXT,
                medications TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                user_id TEXT PRIMARY KEY,
                display_name TEXT,
                avatar_url TEXT,
                bio TEXT,
                activity_level TEXT,
                calorie_goal REAL,
                water_goal REAL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )
        # Intake rows reference users by id only; the user may live elsewhere.
        for table in INTAKE_TABLES:
            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    calories REAL NOT NULL DEFAULT 0,
                    protein REAL NOT NULL DEFAULT 0,
                    carbs REAL NOT NULL DEFAULT 0,
                    fats REAL NOT NULL DEFAULT 0,
                    fiber REAL NOT NULL DEFAULT 0,
                    water REAL NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (user_id, date)
                );
                """
            )
            cur.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{table}_user_date ON {table}(user_id, date DESC);"
            )
        conn.commit()
    finally:
        conn.close()


def describe_schema(db_path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Return ``{table: [{column_name, data_type, is_nullable}, ...]}`` for user tables."""
    conn = connect(db_path)
    try:
        tables = [
            row["name"]
            for row in conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        ]
        schema: Dict[str, List[Dict[str, Any]]] = {}
        for table in tables:
            columns = conn.execute(f"PRAGMA table_info({table})").fetchall()
            schema[table] = [
                {
                    "column_name": col["name"],
                    "data_type": col["type"] or "ANY",
                    "is_nullable": not col["notnull"] and not col["pk"],
                }
                for col in columns
            ]
        return schema
    finally:
        conn.close()


@contextmanager
def db_conn(db_path: Path, *, immediate: bool = False, timeout: float = 30.0) -> Iterator[sqlite3.Connection]:
    """Open a connection, commit on success.

    With ``immediate=True`` the write lock is taken up front (``BEGIN IMMEDIATE``)
    so reads inside the block see no concurrent writer until commit.
    """
    conn = connect(db_path, timeout=timeout)
    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    finally:
        conn.close()

# -*- coding: utf-8 -*-
"""
Admin CLI for the intake database.

Usage:
    python -m nutrilog.cli init-db
    python -m nutrilog.cli schema
    python -m nutrilog.cli stats <user_id> [--scope weekly]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional


def _db_path(args: argparse.Namespace) -> Path:
    from .config import settings

    return Path(args.db_path).expanduser() if args.db_path else settings.db_path


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create missing tables."""
    from .app_db import init_app_db

    db_path = _db_path(args)
    init_app_db(db_path)
    print(f"Database ready: {db_path}")
    return 0


def cmd_schema(args: argparse.Namespace) -> int:
    """Print tables and columns."""
    from .app_db import describe_schema

    db_path = _db_path(args)
    if not db_path.exists():
        print(f"Error: Database not found: {db_path}")
        print("Run 'init-db' first.")
        return 1

    tables = describe_schema(db_path)
    if not tables:
        print("No tables found in the database.")
        return 0

    print("=== Database Schema ===")
    for table, columns in tables.items():
        print(f"\nTable: {table}")
        print("Columns:")
        for col in columns:
            nullable = "NULL" if col["is_nullable"] else "NOT NULL"
            print(f"  - {col['column_name']:<25} {col['data_type']:<20} {nullable}")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Print average intake for one user."""
    from .intake.storage import IntakeRequestError, IntakeStorageError, compute_stats

    db_path = _db_path(args)
    if not db_path.exists():
        print(f"Error: Database not found: {db_path}")
        return 1

    try:
        stats = compute_stats(args.user_id, scope=args.scope, db_path=db_path)
    except (IntakeRequestError, IntakeStorageError) as exc:
        print(f"Error: {exc}")
        return 1

    print(f"User: {args.user_id} ({args.scope})")
    print(f"Records: {stats.total_records}")
    for name, value in stats.model_dump(exclude={"total_records", "latest_entry"}).items():
        print(f"  {name:<18} {value:.2f}")
    if stats.latest_entry:
        print(f"Latest entry: {stats.latest_entry.date}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Nutrition intake database CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db-path",
        help="Path to SQLite database (default: NUTRILOG_DB_PATH or data/nutrilog.db)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init-db", help="Create missing tables")
    subparsers.add_parser("schema", help="Show tables and columns")

    stats_parser = subparsers.add_parser("stats", help="Show average intake for a user")
    stats_parser.add_argument("user_id", help="User identifier")
    stats_parser.add_argument(
        "--scope",
        default="daily",
        help="daily or weekly (default: daily)",
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "init-db": cmd_init_db,
        "schema": cmd_schema,
        "stats": cmd_stats,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the intake API."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        data_root_default = base_dir.parent / "data"

        self.data_root: Path = Path(
            os.environ.get("NUTRILOG_DATA_ROOT") or data_root_default
        ).expanduser()
        self.db_path: Path = Path(
            os.environ.get("NUTRILOG_DB_PATH") or (self.data_root / "nutrilog.db")
        ).expanduser()
        # Seconds a writer waits for the SQLite write lock before failing.
        self.db_timeout: float = float(os.environ.get("NUTRILOG_DB_TIMEOUT") or "30")

        self.environment: str = (os.environ.get("NUTRILOG_ENV") or "production").strip().lower()
        self.log_level: str = (os.environ.get("NUTRILOG_LOG_LEVEL") or "INFO").strip().upper()

        self.host: str = os.environ.get("NUTRILOG_HOST") or os.environ.get("HOST") or "127.0.0.1"
        self.port_raw: str = os.environ.get("NUTRILOG_PORT") or os.environ.get("PORT") or "8000"

        cors = os.environ.get("NUTRILOG_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]

    @property
    def debug(self) -> bool:
        # Error responses include underlying details only in development.
        return self.environment == "development"

    @property
    def port(self) -> int:
        try:
            return int(self.port_raw)
        except ValueError:
            return 8000


settings = Settings()

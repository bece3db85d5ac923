from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from .daykey import DEFAULT_DAY_BOUNDARY_HOUR


class Settings:
    """Centralized configuration for the MuscleRise service and client."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("MUSCLERISE_DATA_ROOT") or data_root_default
        ).expanduser()
        self.db_path: Path = Path(
            os.environ.get("MUSCLERISE_DB_PATH") or (self.data_root / "musclerise.db")
        ).expanduser()
        # In production you MUST set MUSCLERISE_JWT_SECRET. The dev secret keeps local demos easy.
        self.jwt_secret: str = os.environ.get("MUSCLERISE_JWT_SECRET") or "dev-secret-change-me"
        self.token_ttl_days: int = int(os.environ.get("MUSCLERISE_TOKEN_TTL_DAYS") or "7")

        # ---- Day cycle (shared by client reducer and server reset) ----
        self.day_boundary_hour: int = int(
            os.environ.get("MUSCLERISE_DAY_BOUNDARY_HOUR") or str(DEFAULT_DAY_BOUNDARY_HOUR)
        )
        if not 0 <= self.day_boundary_hour <= 23:
            raise ValueError("MUSCLERISE_DAY_BOUNDARY_HOUR must be within 0..23")
        # IANA zone name; empty means the host's local zone.
        self.timezone: Optional[str] = os.environ.get("MUSCLERISE_TIMEZONE") or None

        # ---- Client sync ----
        self.api_base_url: str = os.environ.get("MUSCLERISE_API_BASE_URL", "http://127.0.0.1:8000")
        self.sync_debounce_sec: float = float(os.environ.get("MUSCLERISE_SYNC_DEBOUNCE_SEC") or "5")
        self.hydrate_suppress_sec: float = float(os.environ.get("MUSCLERISE_HYDRATE_SUPPRESS_SEC") or "5")
        self.http_timeout_sec: float = float(os.environ.get("MUSCLERISE_HTTP_TIMEOUT_SEC") or "10")
        self.sync_max_attempts: int = int(os.environ.get("MUSCLERISE_SYNC_MAX_ATTEMPTS") or "3")
        self.sync_backoff_sec: float = float(os.environ.get("MUSCLERISE_SYNC_BACKOFF_SEC") or "0.5")

        self.log_level: str = os.environ.get("MUSCLERISE_LOG_LEVEL", "INFO").upper()

        cors = os.environ.get("MUSCLERISE_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass
class Settings:
    """
    Centralized application configuration.

    Values are loaded from environment variables via Settings.from_env().
    """

    # --- Database ---
    postgres_dsn: str = ""
    table_schema: str = "public"

    # --- Workflow ---
    page_size: int = 100

    # --- Observability ---
    metrics_enabled: bool = True
    log_level: str = "INFO"

    # --- App version ---
    app_version: str = "dev"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build Settings from environment variables with sane fallbacks."""

        def getenv_int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError:
                return default

        def getenv_bool(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            return raw.strip().lower() in ("1", "true", "yes", "on")

        return cls(
            postgres_dsn=os.getenv("POSTGRES_DSN", cls.postgres_dsn),
            table_schema=os.getenv("TABLE_SCHEMA", cls.table_schema),
            page_size=getenv_int("PAGE_SIZE", cls.page_size),
            metrics_enabled=getenv_bool("METRICS_ENABLED", cls.metrics_enabled),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            app_version=os.getenv("APP_VERSION", cls.app_version),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()

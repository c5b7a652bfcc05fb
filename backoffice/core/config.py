"""
Core - Application settings loaded from the environment.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    currency_suffix: str
    warehouse_label: str
    warehouse_title: str
    max_attachment_bytes: int
    log_level: str
    log_json: bool
    cors_origins: tuple[str, ...]


settings = Settings(
    app_name=os.getenv("APP_NAME", "Warehouse Back Office API"),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./data/backoffice.db"),
    currency_suffix=os.getenv("CURRENCY_SUFFIX", "₸"),
    warehouse_label=os.getenv("WAREHOUSE_LABEL", "Main warehouse"),
    warehouse_title=os.getenv("WAREHOUSE_TITLE", "Warehouse"),
    max_attachment_bytes=_env_int("MAX_ATTACHMENT_BYTES", 10 * 1024 * 1024, min_value=1),
    log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    log_json=_env_bool("LOG_JSON", False),
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ),
)

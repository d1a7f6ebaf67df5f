"""Settings loaded from environment variables (+ optional .env)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

ENV_PREFIX = "TAREAS"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    app_name: str
    log_level: str
    log_file: str

    # storage
    data_file: Path
    seed_categories: bool

    # fixed credentials
    api_token: str
    admin_user: str
    admin_password: str

    # server
    host: str
    port: int
    cors_origins: List[str]


def load_settings() -> Settings:
    # PORT without prefix is what most hosting platforms set
    port = _env_int(_k("PORT"), _env_int("PORT", 3000))
    return Settings(
        app_name=_env(_k("APP_NAME"), "Lista de Tareas"),
        log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
        log_file=_env(_k("LOG_FILE"), ""),
        data_file=_env_path(_k("DATA_FILE"), Path("tareas.json")),
        seed_categories=_env_bool(_k("SEED_CATEGORIES"), True),
        api_token=_env(_k("API_TOKEN"), "demo-token-123"),
        admin_user=_env(_k("ADMIN_USER"), "admin"),
        admin_password=_env(_k("ADMIN_PASSWORD"), "admin123"),
        host=_env(_k("HOST"), "0.0.0.0"),
        port=port,
        cors_origins=_env_list(_k("CORS_ORIGINS"), ["*"]),
    )


settings = load_settings()

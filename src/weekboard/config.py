# src/weekboard/config.py

"""Centralized settings loaded from environment variables (+ .env).

Design goals:
- One Settings object for the whole app (board client and task API server).
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "WEEKBOARD"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def load_env_file(path: str | Path | None = None) -> bool:
    """
    Load a .env file into os.environ without overriding variables already set.

    Without a path, the nearest .env from the working directory upwards is used.
    """
    dotenv_path = path if path is not None else find_dotenv(usecwd=True)
    if not dotenv_path:
        return False
    return load_dotenv(dotenv_path, override=False)


load_env_file()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


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


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def parse_token_map(raw: str | None) -> Dict[str, str]:
    """
    Parse "token:user_id" pairs separated by commas or whitespace.

    Malformed pairs are skipped; a later duplicate token wins.
    """
    out: Dict[str, str] = {}
    if not raw:
        return out
    for part in raw.replace(",", " ").split():
        token, sep, user_id = part.partition(":")
        token = token.strip()
        user_id = user_id.strip()
        if not sep or not token or not user_id:
            continue
        out[token] = user_id
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Remote task API (client side) ----
    api_base_url: str
    api_token: Optional[str]
    http_connect_timeout: float
    http_read_timeout: float

    # ---- Task API server ----
    server_host: str
    server_port: int
    api_tokens: Dict[str, str]

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="weekboard") or "weekboard"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        api_base_url = _env(_k("API_BASE_URL"), "http://127.0.0.1:8000/api").rstrip("/")
        api_token = _first_env(_k("API_TOKEN"), default=None)

        http_connect_timeout = _env_float(_k("HTTP_CONNECT_TIMEOUT_SECONDS"), 5.0)
        # keep read >= connect as a sane baseline
        http_read_timeout = max(
            _env_float(_k("HTTP_READ_TIMEOUT_SECONDS"), 15.0),
            http_connect_timeout,
        )

        server_host = _env(_k("SERVER_HOST"), "127.0.0.1")
        server_port = _env_int(_k("SERVER_PORT"), 8000)
        api_tokens = parse_token_map(_env(_k("API_TOKENS"), ""))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/weekboard"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            api_base_url=api_base_url,
            api_token=api_token,
            http_connect_timeout=http_connect_timeout,
            http_read_timeout=http_read_timeout,
            server_host=server_host,
            server_port=server_port,
            api_tokens=api_tokens,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS

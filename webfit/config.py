from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, cast

Mode = Literal["server", "demo"]
PersistTarget = Literal["sqlite", "local"]


def persist_target() -> PersistTarget:
    """Return the store the API server persists to (``WEBFIT_STORE``, default sqlite)."""
    value = os.environ.get("WEBFIT_STORE", "sqlite").strip().lower()
    return cast(PersistTarget, "local" if value == "local" else "sqlite")


def mode() -> Mode:
    """Return the deployment mode.

    ``server`` talks to the HTTP API over the network, ``demo`` runs the same
    surface in-process on top of the local storage store. Anything that is
    not ``server`` falls back to ``demo``.
    """
    value = os.environ.get("WEBFIT_MODE", "demo").strip().lower()
    return cast(Mode, "server" if value == "server" else "demo")


def db_path() -> str:
    return os.environ.get("DB_PATH", "./webfit.db")


def local_storage_path() -> str | None:
    """Path of the JSON document backing the demo store, or None for memory only."""
    return os.environ.get("WEBFIT_LOCAL_STORAGE") or None


def api_base_url() -> str:
    return os.environ.get("WEBFIT_API_URL", "http://127.0.0.1:8000").rstrip("/")


def demo_latency_ms() -> int:
    try:
        return max(0, int(os.environ.get("WEBFIT_DEMO_LATENCY_MS", "120")))
    except ValueError:
        return 120


@dataclass
class ServerConfig:
    host: str
    port: int


def server_config() -> ServerConfig:
    return ServerConfig(
        host=os.environ.get("WEBFIT_HOST", "127.0.0.1"),
        port=int(os.environ.get("WEBFIT_PORT", "8000")),
    )


@dataclass
class LogConfig:
    level: str
    log_file: str | None


def log_config() -> LogConfig:
    return LogConfig(
        level=os.environ.get("WEBFIT_LOG_LEVEL", "INFO"),
        log_file=os.environ.get("WEBFIT_LOG_FILE") or None,
    )

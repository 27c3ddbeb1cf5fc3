"""Centralised environment configuration helpers for tg-compose."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from platformdirs import user_config_dir, user_data_dir

logger = logging.getLogger(__name__)

APP_NAME = "tg-compose"
CONFIG_DIR = Path(user_config_dir(APP_NAME))
DATA_DIR = Path(user_data_dir(APP_NAME))
ENV_PATH = CONFIG_DIR / ".env"
LOCAL_ENV_PATH = Path.cwd() / ".env"

DEFAULT_API_BASE = "https://api.telegram.org"


def _load_env_files() -> None:
    # real environment wins over both files; the user config file wins over the local one
    load_dotenv(ENV_PATH, override=False)
    load_dotenv(LOCAL_ENV_PATH, override=False)


def _getenv(*names: str, required: bool = False, default: Optional[str] = None) -> Optional[str]:
    for idx, name in enumerate(names):
        value = os.getenv(name)
        if value:
            if len(names) > 1 and idx != 0:
                logger.warning(
                    "ENV alias %s used for %s; please rename to %s",
                    name,
                    names[0],
                    names[0],
                )
            return value
    if required and default is None:
        raise RuntimeError(f"Missing required env var: one of {names}")
    return default


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class TelegramCfg:
    token: str
    api_base: str


@dataclass(frozen=True)
class HttpCfg:
    timeout: float


@dataclass(frozen=True)
class StorageCfg:
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    secure: bool
    public_url: str

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)


@dataclass(frozen=True)
class PresetsCfg:
    db_path: str


@dataclass(frozen=True)
class LogCfg:
    level: str
    json: bool


@dataclass(frozen=True)
class AppConfig:
    telegram: TelegramCfg
    http: HttpCfg
    storage: StorageCfg
    presets: PresetsCfg
    log: LogCfg


def _storage_host(endpoint: str) -> str:
    """Return ``host[:port]`` for ``endpoint`` with any scheme removed."""

    endpoint = endpoint.strip()
    if "://" in endpoint:
        return urlparse(endpoint).netloc
    return endpoint.rstrip("/")


def _storage_public_url(endpoint: str, secure: bool) -> str:
    if not endpoint:
        return ""
    if "://" in endpoint:
        return endpoint.rstrip("/")
    scheme = "https" if secure else "http"
    return f"{scheme}://{endpoint.rstrip('/')}"


@lru_cache()
def load_all() -> AppConfig:
    _load_env_files()

    telegram_cfg = TelegramCfg(
        token=(_getenv("TELEGRAM_BOT_TOKEN", "BOT_TOKEN", default="") or "").strip(),
        api_base=(_getenv("TELEGRAM_API_BASE", default=DEFAULT_API_BASE) or DEFAULT_API_BASE).rstrip("/"),
    )

    http_timeout = _getenv("HTTP_TIMEOUT", default="10") or "10"
    http_cfg = HttpCfg(timeout=float(http_timeout))

    endpoint_raw = _getenv("STORAGE_ENDPOINT", "MINIO_ENDPOINT", default="") or ""
    secure = _as_bool(_getenv("STORAGE_SECURE", "MINIO_SECURE"), True)
    public_url = _getenv("STORAGE_PUBLIC_URL", "MINIO_PUBLIC_URL") or _storage_public_url(endpoint_raw, secure)
    storage_cfg = StorageCfg(
        endpoint=_storage_host(endpoint_raw),
        access_key=_getenv("STORAGE_ACCESS_KEY", "MINIO_ACCESS_KEY", default="") or "",
        secret_key=_getenv("STORAGE_SECRET_KEY", "MINIO_SECRET_KEY", default="") or "",
        bucket=_getenv("STORAGE_BUCKET", "MINIO_BUCKET", default="tg-compose") or "tg-compose",
        secure=secure,
        public_url=public_url.rstrip("/"),
    )

    presets_cfg = PresetsCfg(
        db_path=_getenv("PRESETS_DB_PATH", default=str(DATA_DIR / "presets.sqlite3")) or "",
    )

    log_cfg = LogCfg(
        level=(_getenv("LOG_LEVEL", default="INFO") or "INFO").upper(),
        json=_as_bool(_getenv("LOG_JSON"), False),
    )

    return AppConfig(
        telegram=telegram_cfg,
        http=http_cfg,
        storage=storage_cfg,
        presets=presets_cfg,
        log=log_cfg,
    )

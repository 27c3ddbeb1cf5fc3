"""Compose and send Telegram bot messages with MarkdownV2 formatting."""

from __future__ import annotations

from functools import lru_cache
from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from .config import AppConfig, HttpCfg, LogCfg, PresetsCfg, StorageCfg, TelegramCfg

__version__ = "0.3.0"


def _config_module():
    """Return the lazily-imported configuration module."""

    return import_module(__name__ + ".config")


@lru_cache()
def _cached_config() -> "AppConfig":
    return _config_module().load_all()


def telegram_cfg() -> "TelegramCfg":
    return _cached_config().telegram


def http_cfg() -> "HttpCfg":
    return _cached_config().http


def storage_cfg() -> "StorageCfg":
    return _cached_config().storage


def presets_cfg() -> "PresetsCfg":
    return _cached_config().presets


def log_cfg() -> "LogCfg":
    return _cached_config().log


def reset_config() -> None:
    """Drop cached configuration so the environment is read again."""

    _cached_config.cache_clear()
    _config_module().load_all.cache_clear()


__all__ = [
    "__version__",
    "http_cfg",
    "log_cfg",
    "presets_cfg",
    "reset_config",
    "storage_cfg",
    "telegram_cfg",
]

"""Logging helpers with KV/JSON formatting and secret masking."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List

from . import log_cfg

_SECRET_KEY_PATTERN = re.compile(r"(TOKEN|SECRET|SECRET_KEY|ACCESS_KEY)$", re.IGNORECASE)
_TOKEN_PATTERN = re.compile(r"bot(\d+):([A-Za-z0-9_-]+)")
_BARE_TOKEN_PATTERN = re.compile(r"\b(\d{5,}):([A-Za-z0-9_-]{20,})\b")


def mask_secrets(text: Any) -> Any:
    """Mask Telegram bot tokens inside ``text``."""

    if not isinstance(text, str):
        return text
    masked = _TOKEN_PATTERN.sub(lambda m: f"bot{m.group(1)}:***", text)
    return _BARE_TOKEN_PATTERN.sub(lambda m: f"{m.group(1)}:***", masked)


def _secret_env_values() -> List[str]:
    return [value for key, value in os.environ.items() if value and _SECRET_KEY_PATTERN.search(key)]


def _scrub(text: str, secrets: List[str]) -> str:
    text = mask_secrets(text)
    for value in secrets:
        text = text.replace(value, "***")
    return text


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    ctx = getattr(record, "ctx", None)
    if not isinstance(ctx, dict):
        return {}
    return {key: value for key, value in ctx.items() if value is not None}


class SecretsFilter(logging.Filter):
    """Mask bot tokens and secret env values in the message and its ``ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        secrets = _secret_env_values()
        record.msg = _scrub(record.getMessage(), secrets)
        record.args = ()
        ctx = getattr(record, "ctx", None)
        if isinstance(ctx, dict):
            record.ctx = {
                key: _scrub(value, secrets) if isinstance(value, str) else value for key, value in ctx.items()
            }
        return True


class KVFormatter(logging.Formatter):
    """``<base> | key=value ...``; context keys set to ``None`` are left out."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        kv = " ".join(f"{key}={value}" for key, value in _context(record).items())
        return f"{base} | {kv}" if kv else base


class JSONFormatter(logging.Formatter):
    """One JSON object per line, context keys merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str | None = None) -> None:
    """Install a single stderr handler on the root logger.

    ``level`` overrides ``LOG_LEVEL``; ``LOG_JSON`` switches to JSON lines.
    Calling it again replaces the previous handler.
    """

    cfg = log_cfg()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(getattr(logging, (level or cfg.level).upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.addFilter(SecretsFilter())
    if cfg.json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(KVFormatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s", "%H:%M:%S"))
    root.addHandler(handler)


def log_kv(logger: logging.Logger, level: int, message: str, **ctx: Any) -> None:
    logger.log(level, message, extra={"ctx": ctx})

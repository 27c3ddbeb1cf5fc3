"""Persist the bot token between runs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .config import CONFIG_DIR

logger = logging.getLogger(__name__)

TOKEN_FILENAME = "bot_token"


class TokenStore:
    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else CONFIG_DIR / TOKEN_FILENAME

    def load(self) -> Optional[str]:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return value or None

    def save(self, token: str) -> None:
        token = (token or "").strip()
        if not token:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token + "\n", encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError:  # pragma: no cover - platform without POSIX modes
            logger.debug("could not restrict permissions on %s", self.path)
        logger.info("bot token saved to %s", self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.info("bot token removed from %s", self.path)


def resolve_token(explicit: Optional[str], store: TokenStore, env_token: Optional[str] = None) -> Optional[str]:
    """Pick the first non-blank token: explicit, environment, then stored."""

    for candidate in (explicit, env_token):
        if candidate and candidate.strip():
            return candidate.strip()
    return store.load()

"""Shared HTTP session and request helper with logging."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Optional

import requests
from requests import Response, Session

from . import http_cfg
from .logging_setup import mask_secrets

logger = logging.getLogger(__name__)


@lru_cache()
def session() -> Session:
    sess = requests.Session()
    sess.headers.update({"User-Agent": "tg-compose"})
    return sess


def request(
    method: str,
    url: str,
    *,
    timeout: Optional[float] = None,
    sess: Optional[Session] = None,
    **kwargs: Any,
) -> Response:
    """Perform one HTTP request; transport failures are logged and re-raised.

    HTTP error statuses are returned to the caller untouched because the
    Telegram envelope in the body carries the useful description.
    """

    effective_timeout = timeout if timeout is not None else http_cfg().timeout
    sess = sess or session()
    try:
        return sess.request(method.upper(), url, timeout=effective_timeout, **kwargs)
    except requests.RequestException as exc:
        logger.warning("HTTP %s %s failed: %s", method.upper(), mask_secrets(url), mask_secrets(str(exc)))
        raise

"""Thin client for the three Telegram Bot API methods the composer needs."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from . import http_client, telegram_cfg
from .errors import InvalidTokenError, TelegramApiError, TelegramNetworkError
from .logging_setup import log_kv, mask_secrets

logger = logging.getLogger("tgcompose.bot_api")

PARSE_MODE = "MarkdownV2"


def validate_token(token: Optional[str]) -> bool:
    """Cheap local check for the ``123456789:ABC...`` token shape."""

    token = (token or "").strip()
    return ":" in token and len(token) > 20


class BotApi:
    def __init__(
        self,
        token: str,
        *,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        token = (token or "").strip()
        if not validate_token(token):
            raise InvalidTokenError("Invalid bot token format. Expected 123456789:ABCdef...")
        self._token = token
        self._base = (api_base or telegram_cfg().api_base).rstrip("/")
        self._timeout = timeout
        self._session = session

    def __repr__(self) -> str:
        return f"BotApi({mask_secrets('bot' + self._token)!r})"

    def _url(self, method: str) -> str:
        return f"{self._base}/bot{self._token}/{method}"

    def _call(self, http_method: str, method: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        kwargs: Dict[str, Any] = {}
        if payload is not None:
            kwargs["json"] = payload
        try:
            response = http_client.request(
                http_method,
                self._url(method),
                timeout=self._timeout,
                sess=self._session,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise TelegramNetworkError(f"{method}: {mask_secrets(str(exc))}") from exc

        try:
            data = response.json()
        except ValueError:
            log_kv(
                logger,
                logging.WARNING,
                "telegram returned non-JSON body",
                method=method,
                status=response.status_code,
            )
            raise TelegramApiError(method, f"unexpected response (HTTP {response.status_code})", response.status_code)

        if not isinstance(data, dict) or not data.get("ok"):
            description = "request rejected"
            error_code = response.status_code
            if isinstance(data, dict):
                description = str(data.get("description") or description)
                error_code = data.get("error_code", error_code)
            log_kv(
                logger,
                logging.WARNING,
                "telegram rejected request",
                method=method,
                status=response.status_code,
                description=description,
            )
            raise TelegramApiError(method, description, error_code)

        log_kv(logger, logging.DEBUG, "telegram ok", method=method, status=response.status_code)
        return data.get("result")

    def get_me(self) -> Dict[str, Any]:
        return self._call("GET", "getMe")

    def send_message(
        self,
        chat_id: str,
        text: str,
        *,
        parse_mode: Optional[str] = PARSE_MODE,
        reply_markup: Optional[Dict[str, Any]] = None,
        disable_notification: bool = False,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        if disable_notification:
            payload["disable_notification"] = True
        return self._call("POST", "sendMessage", payload)

    def send_photo(
        self,
        chat_id: str,
        photo: str,
        *,
        caption: Optional[str] = None,
        parse_mode: Optional[str] = PARSE_MODE,
        reply_markup: Optional[Dict[str, Any]] = None,
        disable_notification: bool = False,
    ) -> Dict[str, Any]:
        """Send ``photo`` (a public URL or a Telegram ``file_id``)."""

        payload: Dict[str, Any] = {"chat_id": chat_id, "photo": photo}
        if caption:
            payload["caption"] = caption
            if parse_mode:
                payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        if disable_notification:
            payload["disable_notification"] = True
        return self._call("POST", "sendPhoto", payload)

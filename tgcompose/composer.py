"""Message draft state and the submit action."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Optional, Protocol, Tuple

from .bot_api import PARSE_MODE
from .errors import DraftError
from .formatting import TG_CAPTION_LIMIT, TG_TEXT_LIMIT, format_for_telegram
from .keyboard import ButtonList
from .logging_setup import log_kv

logger = logging.getLogger("tgcompose.composer")


class TelegramApi(Protocol):
    def get_me(self) -> Dict[str, Any]:
        ...

    def send_message(self, chat_id: str, text: str, **kwargs: Any) -> Dict[str, Any]:
        ...

    def send_photo(self, chat_id: str, photo: str, **kwargs: Any) -> Dict[str, Any]:
        ...


@dataclass
class MessageDraft:
    chat_id: str = ""
    text: str = ""
    photo_url: str = ""
    buttons: ButtonList = field(default_factory=ButtonList)
    disable_notification: bool = False


def check_draft(draft: MessageDraft) -> None:
    if not draft.chat_id.strip() or not draft.text.strip():
        raise DraftError("Please provide chat ID and message")


def render_draft(draft: MessageDraft) -> Dict[str, Any]:
    """Return ``{"method": ..., "payload": ...}`` for ``draft``.

    No request is made, so a dry run needs neither a token nor a client.
    """

    text = format_for_telegram(draft.text)
    payload: Dict[str, Any] = {"chat_id": draft.chat_id.strip(), "parse_mode": PARSE_MODE}
    photo = draft.photo_url.strip()
    if photo:
        method = "sendPhoto"
        payload["photo"] = photo
        payload["caption"] = text
        limit = TG_CAPTION_LIMIT
    else:
        method = "sendMessage"
        payload["text"] = text
        limit = TG_TEXT_LIMIT
    if len(text) > limit:
        log_kv(
            logger,
            logging.WARNING,
            "formatted text exceeds Telegram limit",
            method=method,
            length=len(text),
            limit=limit,
        )
    markup = draft.buttons.reply_markup()
    if markup:
        payload["reply_markup"] = markup
    if draft.disable_notification:
        payload["disable_notification"] = True
    return {"method": method, "payload": payload}


class MessageComposer:
    """Send drafts through ``api`` and remember the last few texts.

    ``history`` lives as long as the composer does.  A long-running caller
    keeps one composer around; each ``tgcompose send`` run starts empty.
    """

    def __init__(self, api: TelegramApi, history_size: int = 5) -> None:
        self._api = api
        self._history: Deque[str] = deque(maxlen=max(1, history_size))

    @property
    def history(self) -> Tuple[str, ...]:
        return tuple(self._history)

    def send(self, draft: MessageDraft) -> Dict[str, Any]:
        """Send ``draft`` and return the Telegram ``Message`` object."""

        check_draft(draft)
        rendered = render_draft(draft)
        me = self._api.get_me()
        payload = dict(rendered["payload"])
        chat_id = payload.pop("chat_id")
        if rendered["method"] == "sendPhoto":
            photo = payload.pop("photo")
            result = self._api.send_photo(chat_id, photo, **payload)
        else:
            text = payload.pop("text")
            result = self._api.send_message(chat_id, text, **payload)
        log_kv(
            logger,
            logging.INFO,
            "message sent",
            bot=(me or {}).get("username"),
            method=rendered["method"],
            message_id=(result or {}).get("message_id"),
            buttons=len(draft.buttons),
        )
        self._history.appendleft(draft.text)
        draft.text = ""
        return result


def draft_from_values(
    chat_id: str,
    text: str,
    *,
    photo_url: Optional[str] = None,
    buttons: Optional[ButtonList] = None,
    disable_notification: bool = False,
) -> MessageDraft:
    return MessageDraft(
        chat_id=chat_id or "",
        text=text or "",
        photo_url=photo_url or "",
        buttons=buttons if buttons is not None else ButtonList(),
        disable_notification=disable_notification,
    )

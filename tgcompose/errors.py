"""Exception hierarchy shared by the tg-compose modules."""

from __future__ import annotations

from typing import Optional


class ComposeError(Exception):
    """Base class for every error surfaced to the user as a notification."""


class InvalidTokenError(ComposeError):
    """The bot token does not look like ``<id>:<secret>``."""


class TelegramApiError(ComposeError):
    """Telegram answered but rejected the request."""

    def __init__(self, method: str, description: str, error_code: Optional[int] = None) -> None:
        self.method = method
        self.description = description
        self.error_code = error_code
        prefix = f"{method} failed"
        if error_code is not None:
            prefix = f"{prefix} ({error_code})"
        super().__init__(f"{prefix}: {description}")


class TelegramNetworkError(ComposeError):
    """The Bot API could not be reached."""


class DraftError(ComposeError):
    """The message draft is missing required fields."""


class PresetError(ComposeError):
    pass


class PresetNotFound(PresetError):
    pass


class UploadError(ComposeError):
    pass

"""Inline keyboard buttons grouped into rows."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Button:
    text: str
    url: str
    row: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Button":
        return cls(
            text=str(data.get("text") or ""),
            url=str(data.get("url") or ""),
            row=int(data.get("row") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "url": self.url, "row": self.row}


def build_inline_keyboard(buttons: Iterable[Button]) -> List[List[Dict[str, str]]]:
    """Group ``buttons`` into Telegram ``inline_keyboard`` rows.

    Rows are ordered by row number; buttons keep their relative order inside
    a row.  Buttons missing a label or a URL are dropped.
    """

    usable = [b for b in buttons if b.text.strip() and b.url.strip()]
    # sorted() is stable, so the original order survives inside a row
    ordered = sorted(usable, key=lambda b: b.row)
    return [
        [{"text": b.text.strip(), "url": b.url.strip()} for b in group]
        for _, group in groupby(ordered, key=lambda b: b.row)
    ]


def reply_markup(buttons: Iterable[Button]) -> Optional[Dict[str, Any]]:
    rows = build_inline_keyboard(buttons)
    if not rows:
        return None
    return {"inline_keyboard": rows}


class ButtonList:
    """Editable list of buttons backing the message form."""

    def __init__(self, buttons: Iterable[Button] = ()) -> None:
        self._buttons: List[Button] = list(buttons)

    @property
    def buttons(self) -> Tuple[Button, ...]:
        return tuple(self._buttons)

    def __len__(self) -> int:
        return len(self._buttons)

    def __iter__(self):
        return iter(self._buttons)

    def _next_row(self) -> int:
        if not self._buttons:
            return 0
        return max(b.row for b in self._buttons) + 1

    def add(self, text: str, url: str, row: Optional[int] = None) -> Button:
        """Append a button; without ``row`` it opens a new row at the bottom."""

        target = self._next_row() if row is None else row
        if target < 0:
            raise ValueError("row must be non-negative")
        button = Button(text=text, url=url, row=target)
        self._buttons.append(button)
        return button

    def remove(self, index: int) -> Button:
        self._check_index(index)
        return self._buttons.pop(index)

    def move(self, index: int, row: int) -> Button:
        """Move the button at ``index`` to ``row``."""

        self._check_index(index)
        if row < 0:
            raise ValueError("row must be non-negative")
        current = self._buttons[index]
        moved = Button(text=current.text, url=current.url, row=row)
        self._buttons[index] = moved
        return moved

    def replace(self, buttons: Iterable[Button]) -> None:
        self._buttons = list(buttons)

    def clear(self) -> None:
        self._buttons.clear()

    def reply_markup(self) -> Optional[Dict[str, Any]]:
        return reply_markup(self._buttons)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._buttons):
            raise IndexError(f"no button at index {index}")

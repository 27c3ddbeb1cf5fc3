"""Markdown to Telegram MarkdownV2 conversion.

The input dialect is the small Markdown subset people type into a message
box: ``**bold**``, ``*italic*``, ``~~strike~~``, inline ``code``, fenced
code blocks and ``[label](url)`` links.  Everything outside those spans is
literal text and gets escaped for MarkdownV2, except emoji which Telegram
accepts as-is.
"""

from __future__ import annotations

import re
from typing import Iterator, Tuple

import emoji

TG_TEXT_LIMIT = 4096
TG_CAPTION_LIMIT = 1024

_MD2_NEED_ESCAPE = r"[_*\[\]()~`>#+\-=|{}.!]"
_ESCAPE_RE = re.compile(f"({_MD2_NEED_ESCAPE})")

# Branch order is the precedence order: the leftmost match wins and, at the
# same position, the earlier branch wins.  Only code blocks may span lines.
# Italic delimiters are lone asterisks, never part of a ``**`` run.
_SEGMENT_RE = re.compile(
    r"```(?P<pre>[\s\S]+?)```"
    r"|\*\*(?P<bold>[^\n]+?)\*\*"
    r"|(?<!\*)\*(?!\*)(?P<italic>[^*\n]+)(?<!\*)\*(?!\*)"
    r"|~~(?P<strike>[^\n]+?)~~"
    r"|`(?P<code>[^`\n]+)`"
    r"|\[(?P<label>[^\]\n]+)\]\((?P<url>[^)\n]+)\)"
)

_WRAPPERS = {
    "pre": "```",
    "bold": "*",
    "italic": "_",
    "strike": "~",
    "code": "`",
}


def escape_markdown_v2(text: str) -> str:
    """Escape characters that have special meaning in MarkdownV2.

    Backslashes are not part of the reserved set and are left untouched, so
    the substitution never re-escapes its own output.
    """

    if not text:
        return ""
    return _ESCAPE_RE.sub(r"\\\1", text)


def _emoji_runs(text: str) -> Iterator[Tuple[str, bool]]:
    """Yield ``(run, is_emoji)`` pairs covering ``text`` in order."""

    pos = 0
    for found in emoji.emoji_list(text):
        start, end = found["match_start"], found["match_end"]
        if start > pos:
            yield text[pos:start], False
        yield text[start:end], True
        pos = end
    if pos < len(text):
        yield text[pos:], False


def escape_literal(text: str) -> str:
    """Escape plain text while passing emoji through unchanged."""

    return "".join(run if is_emoji else escape_markdown_v2(run) for run, is_emoji in _emoji_runs(text))


def _convert_span(match: re.Match[str]) -> str:
    kind = match.lastgroup
    if kind == "url":
        label = escape_markdown_v2(match.group("label"))
        url = escape_markdown_v2(match.group("url"))
        return f"[{label}]({url})"
    wrapper = _WRAPPERS[kind]
    return f"{wrapper}{escape_markdown_v2(match.group(kind))}{wrapper}"


def format_for_telegram(raw_text: str) -> str:
    """Rewrite ``raw_text`` for Telegram's ``MarkdownV2`` parse mode.

    The text is cut into literal runs and markup spans in a single pass.
    Spans are converted to their MarkdownV2 spelling with the content
    escaped; literal runs are escaped except for emoji.  Unterminated
    delimiters are literal text.  The transform is not idempotent.
    """

    if not raw_text:
        return ""
    parts = []
    pos = 0
    for match in _SEGMENT_RE.finditer(raw_text):
        if match.start() > pos:
            parts.append(escape_literal(raw_text[pos : match.start()]))
        parts.append(_convert_span(match))
        pos = match.end()
    if pos < len(raw_text):
        parts.append(escape_literal(raw_text[pos:]))
    return "".join(parts)


__all__ = [
    "TG_CAPTION_LIMIT",
    "TG_TEXT_LIMIT",
    "escape_literal",
    "escape_markdown_v2",
    "format_for_telegram",
]

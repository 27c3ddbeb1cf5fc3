"""Command-line front end: the message form without the browser."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__, telegram_cfg
from .bot_api import BotApi, validate_token
from .composer import MessageComposer, check_draft, draft_from_values, render_draft
from .errors import ComposeError, InvalidTokenError, UploadError
from .formatting import format_for_telegram
from .keyboard import Button, ButtonList
from .logging_setup import mask_secrets, setup_logging
from .presets import PresetStore
from .token_store import TokenStore, resolve_token
from .uploads import ImageUploader

logger = logging.getLogger("tgcompose.cli")


def _read_text(text: Optional[str], file: Optional[str]) -> str:
    if text is not None:
        return text
    if file == "-":
        return sys.stdin.read()
    if file:
        try:
            return Path(file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ComposeError(f"Cannot read {file}: {exc}") from exc
    return ""


def _button_args(values: Optional[List[List[str]]]) -> List[Button]:
    buttons: List[Button] = []
    for text, url, row in values or []:
        try:
            row_no = int(row)
        except ValueError:
            raise ComposeError(f"Button row must be a number, got {row!r}") from None
        if row_no < 0:
            raise ComposeError("Button row must be non-negative")
        buttons.append(Button(text=text, url=url, row=row_no))
    return buttons


def _uploader() -> ImageUploader:
    uploader = ImageUploader.from_config()
    if uploader is None:
        raise UploadError("Image upload is not configured (set STORAGE_ENDPOINT)")
    return uploader


def _mask_token(token: str) -> str:
    bot_id, _, secret = token.partition(":")
    if not secret:
        return "***"
    return f"{bot_id}:{secret[:3]}***"


def cmd_format(args: argparse.Namespace) -> int:
    text = _read_text(args.text, args.file)
    sys.stdout.write(format_for_telegram(text))
    if not text.endswith("\n"):
        sys.stdout.write("\n")
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    text = _read_text(args.text, args.file)
    buttons = ButtonList()
    if args.preset:
        with PresetStore.open(args.db) as store:
            buttons.replace(store.get(args.preset).buttons)
    for button in _button_args(args.button):
        buttons.add(button.text, button.url, button.row)

    photo = args.photo or ""
    if args.upload:
        photo = _uploader().upload_file(args.upload)
        print(f"Image uploaded: {photo}")

    draft = draft_from_values(
        args.chat_id,
        text,
        photo_url=photo,
        buttons=buttons,
        disable_notification=args.silent,
    )

    if args.dry_run:
        check_draft(draft)
        print(json.dumps(render_draft(draft), ensure_ascii=False, indent=2))
        return 0

    store = TokenStore()
    token = resolve_token(args.token, store, telegram_cfg().token)
    if not token:
        raise InvalidTokenError("Please provide bot token (--token, TELEGRAM_BOT_TOKEN or `token set`)")
    api = BotApi(token)
    if args.token:
        store.save(token)
    result = MessageComposer(api).send(draft)
    print(f"Message sent successfully! message_id={result.get('message_id')}")
    return 0


def cmd_token(args: argparse.Namespace) -> int:
    store = TokenStore()
    if args.token_cmd == "set":
        if not validate_token(args.value):
            raise InvalidTokenError("Invalid bot token format. Please check your token.")
        store.save(args.value)
        print("Bot token saved")
    elif args.token_cmd == "show":
        token = store.load()
        print(_mask_token(token) if token else "No saved bot token")
    else:
        store.clear()
        print("Bot token cleared")
    return 0


def cmd_presets(args: argparse.Namespace) -> int:
    with PresetStore.open(args.db) as store:
        if args.presets_cmd == "list":
            presets = store.list()
            if not presets:
                print("No button sets saved")
            for preset in presets:
                print(f"{preset.id}  {preset.name}  ({len(preset.buttons)} buttons)")
        elif args.presets_cmd == "show":
            print(json.dumps(store.get(args.id).to_dict(), ensure_ascii=False, indent=2))
        elif args.presets_cmd == "save":
            preset = store.save(args.name, _button_args(args.button))
            print(f"Button set saved: {preset.id}")
        else:
            store.delete(args.id)
            print("Button set deleted")
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    print(_uploader().upload_file(args.path))
    return 0


def _add_button_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--button",
        nargs=3,
        action="append",
        metavar=("TEXT", "URL", "ROW"),
        help="Inline button; repeat for more buttons",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tgcompose", description="Send formatted messages through a Telegram bot")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_format = sub.add_parser("format", help="Print the MarkdownV2 rendering of a text")
    g = p_format.add_mutually_exclusive_group(required=True)
    g.add_argument("text", nargs="?", help="Text to format")
    g.add_argument("--file", help="UTF-8 file with the text, '-' for stdin")
    p_format.set_defaults(func=cmd_format)

    p_send = sub.add_parser("send", help="Send a message or photo")
    p_send.add_argument("--chat-id", required=True, help="Target chat ID or @channel")
    g = p_send.add_mutually_exclusive_group(required=True)
    g.add_argument("--text", help="Message text")
    g.add_argument("--file", help="UTF-8 file with the message, '-' for stdin")
    photo = p_send.add_mutually_exclusive_group()
    photo.add_argument("--photo", help="Photo URL or file_id")
    photo.add_argument("--upload", help="Upload a local image and attach it")
    _add_button_option(p_send)
    p_send.add_argument("--preset", help="Start from the buttons of a saved set")
    p_send.add_argument("--silent", action="store_true", help="Send without notification")
    p_send.add_argument("--token", help="Bot token; saved for next runs")
    p_send.add_argument("--db", help="Presets database path")
    p_send.add_argument("--dry-run", action="store_true", help="Print the request instead of sending it")
    p_send.set_defaults(func=cmd_send)

    p_token = sub.add_parser("token", help="Manage the saved bot token")
    token_sub = p_token.add_subparsers(dest="token_cmd", required=True)
    p_set = token_sub.add_parser("set")
    p_set.add_argument("value")
    token_sub.add_parser("show")
    token_sub.add_parser("clear")
    p_token.set_defaults(func=cmd_token)

    p_presets = sub.add_parser("presets", help="Manage saved button sets")
    p_presets.add_argument("--db", help="Presets database path")
    presets_sub = p_presets.add_subparsers(dest="presets_cmd", required=True)
    presets_sub.add_parser("list")
    p_show = presets_sub.add_parser("show")
    p_show.add_argument("id")
    p_save = presets_sub.add_parser("save")
    p_save.add_argument("name")
    _add_button_option(p_save)
    p_delete = presets_sub.add_parser("delete")
    p_delete.add_argument("id")
    p_presets.set_defaults(func=cmd_presets)

    p_upload = sub.add_parser("upload", help="Upload an image and print its public URL")
    p_upload.add_argument("path")
    p_upload.set_defaults(func=cmd_upload)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    try:
        return int(args.func(args))
    except ComposeError as exc:
        message = mask_secrets(str(exc))
        logger.error("%s failed: %s", args.command, message)
        print(f"Error: {message}", file=sys.stderr)
        return 1

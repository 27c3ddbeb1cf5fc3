import json
from types import SimpleNamespace

import pytest

from tgcompose import cli
from tgcompose.token_store import TokenStore

TOKEN = "123456789:ABCdefGHIjklMNOpqrsTUVwxyz"


class DummyApi:
    instances: list = []

    def __init__(self, token: str) -> None:
        self.token = token
        self.sent: list = []
        DummyApi.instances.append(self)

    def get_me(self):
        return {"username": "demo_bot"}

    def send_message(self, chat_id, text, **kwargs):
        self.sent.append((chat_id, text, kwargs))
        return {"message_id": 42}

    def send_photo(self, chat_id, photo, **kwargs):
        self.sent.append((chat_id, photo, kwargs))
        return {"message_id": 43}


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    token_path = tmp_path / "bot_token"
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)
    monkeypatch.setattr(cli, "TokenStore", lambda: TokenStore(token_path))
    monkeypatch.setattr(cli, "telegram_cfg", lambda: SimpleNamespace(token=""))
    DummyApi.instances = []
    return tmp_path


def test_format_command(capsys) -> None:
    assert cli.main(["format", "Hi **there**."]) == 0
    assert capsys.readouterr().out == "Hi *there*\\.\n"


def test_send_dry_run_prints_payload(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "BotApi", DummyApi)
    code = cli.main(
        [
            "send",
            "--chat-id",
            "@chan",
            "--text",
            "Hi *there*",
            "--button",
            "Docs",
            "https://docs.example",
            "0",
            "--silent",
            "--dry-run",
        ]
    )
    assert code == 0
    rendered = json.loads(capsys.readouterr().out)
    assert rendered["method"] == "sendMessage"
    assert rendered["payload"] == {
        "chat_id": "@chan",
        "parse_mode": "MarkdownV2",
        "text": "Hi _there_",
        "reply_markup": {"inline_keyboard": [[{"text": "Docs", "url": "https://docs.example"}]]},
        "disable_notification": True,
    }
    assert DummyApi.instances == []


def test_send_uses_and_saves_token(monkeypatch, capsys, isolated) -> None:
    monkeypatch.setattr(cli, "BotApi", DummyApi)
    code = cli.main(["send", "--chat-id", "1", "--text", "a.b", "--token", TOKEN])
    assert code == 0
    assert "message_id=42" in capsys.readouterr().out
    api = DummyApi.instances[0]
    assert api.token == TOKEN
    assert api.sent == [("1", "a\\.b", {"parse_mode": "MarkdownV2"})]
    assert TokenStore(isolated / "bot_token").load() == TOKEN


def test_send_with_preset_buttons(monkeypatch, capsys, isolated) -> None:
    db = str(isolated / "presets.sqlite3")
    assert cli.main(["presets", "--db", db, "save", "Links", "--button", "Site", "https://site", "1"]) == 0
    preset_id = capsys.readouterr().out.strip().split()[-1]
    TokenStore(isolated / "bot_token").save(TOKEN)
    monkeypatch.setattr(cli, "BotApi", DummyApi)
    code = cli.main(
        ["send", "--chat-id", "1", "--text", "x", "--preset", preset_id, "--db", db, "--photo", "https://p/x.png"]
    )
    assert code == 0
    chat_id, photo, kwargs = DummyApi.instances[0].sent[0]
    assert photo == "https://p/x.png"
    assert kwargs["reply_markup"] == {"inline_keyboard": [[{"text": "Site", "url": "https://site"}]]}


def test_send_without_token_fails(capsys) -> None:
    code = cli.main(["send", "--chat-id", "1", "--text", "hello"])
    assert code == 1
    assert "Please provide bot token" in capsys.readouterr().err


def test_send_with_empty_text_fails(capsys) -> None:
    code = cli.main(["send", "--chat-id", "1", "--text", "  ", "--dry-run"])
    assert code == 1
    assert "Error:" in capsys.readouterr().err


def test_token_commands(capsys) -> None:
    assert cli.main(["token", "set", "bad"]) == 1
    assert "Invalid bot token format" in capsys.readouterr().err
    assert cli.main(["token", "set", TOKEN]) == 0
    capsys.readouterr()
    assert cli.main(["token", "show"]) == 0
    out = capsys.readouterr().out
    assert out.strip() == "123456789:ABC***"
    assert cli.main(["token", "clear"]) == 0
    capsys.readouterr()
    cli.main(["token", "show"])
    assert "No saved bot token" in capsys.readouterr().out


def test_presets_list_show_delete(capsys, isolated) -> None:
    db = str(isolated / "p.sqlite3")
    assert cli.main(["presets", "--db", db, "list"]) == 0
    assert "No button sets saved" in capsys.readouterr().out
    cli.main(["presets", "--db", db, "save", "Main", "--button", "A", "https://a", "0"])
    preset_id = capsys.readouterr().out.strip().split()[-1]
    cli.main(["presets", "--db", db, "show", preset_id])
    shown = json.loads(capsys.readouterr().out)
    assert shown["buttons"] == [{"text": "A", "url": "https://a", "row": 0}]
    assert cli.main(["presets", "--db", db, "delete", preset_id]) == 0
    assert cli.main(["presets", "--db", db, "delete", preset_id]) == 1


def test_upload_without_storage_fails(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli.ImageUploader, "from_config", classmethod(lambda cls: None))
    assert cli.main(["upload", "pic.png"]) == 1
    assert "not configured" in capsys.readouterr().err


def test_bad_button_row(capsys, isolated) -> None:
    db = str(isolated / "p.sqlite3")
    assert cli.main(["presets", "--db", db, "save", "X", "--button", "A", "https://a", "top"]) == 1
    assert "row must be a number" in capsys.readouterr().err

import sqlite3

import pytest

from tgcompose.errors import PresetError, PresetNotFound
from tgcompose.keyboard import Button
from tgcompose.presets import PresetStore, connect


@pytest.fixture()
def store(tmp_path):
    with PresetStore.open(str(tmp_path / "state" / "presets.sqlite3")) as s:
        yield s


def test_save_and_get(store: PresetStore) -> None:
    buttons = [Button("Site", "https://example.com", 0), Button("Чат", "https://t.me/chat", 1)]
    preset = store.save("  Default  ", buttons)
    assert preset.name == "Default"
    assert len(preset.id) == 32
    loaded = store.get(preset.id)
    assert loaded == preset
    assert loaded.buttons[1] == Button("Чат", "https://t.me/chat", 1)


def test_list_in_insertion_order(store: PresetStore) -> None:
    first = store.save("first", [])
    second = store.save("second", [Button("a", "https://a")])
    assert [p.id for p in store.list()] == [first.id, second.id]


def test_blank_name_is_rejected(store: PresetStore) -> None:
    with pytest.raises(PresetError):
        store.save("   ", [Button("a", "https://a")])
    assert store.list() == []


def test_delete(store: PresetStore) -> None:
    preset = store.save("tmp", [])
    store.delete(preset.id)
    assert store.list() == []
    with pytest.raises(PresetNotFound):
        store.delete(preset.id)
    with pytest.raises(PresetNotFound):
        store.get(preset.id)


def test_connect_creates_schema(tmp_path) -> None:
    conn = connect(str(tmp_path / "deep" / "dir" / "p.sqlite3"))
    try:
        cur = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        assert "button_sets" in {row["name"] for row in cur.fetchall()}
        assert isinstance(conn, sqlite3.Connection)
    finally:
        conn.close()


def test_to_dict_matches_document_shape(store: PresetStore) -> None:
    preset = store.save("doc", [Button("a", "https://a", 2)])
    assert preset.to_dict() == {
        "id": preset.id,
        "name": "doc",
        "buttons": [{"text": "a", "url": "https://a", "row": 2}],
    }

"""SQLite-backed storage for named button sets."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import time
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from . import presets_cfg
from .errors import PresetError, PresetNotFound
from .keyboard import Button

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    buttons: Tuple[Button, ...]

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "buttons": [b.to_dict() for b in self.buttons]}


def connect(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open the presets database, creating its directory and schema."""

    path = db_path or presets_cfg().db_path
    if path != ":memory:":
        d = os.path.dirname(os.path.abspath(path))
        if d and not os.path.exists(d):
            os.makedirs(d, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    _ensure_schema(conn)
    return conn


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS button_sets (
          id TEXT PRIMARY KEY,
          name TEXT NOT NULL,
          buttons TEXT NOT NULL,
          created_at INTEGER NOT NULL
        )
        """
    )
    conn.commit()


def _row_to_preset(row: sqlite3.Row) -> Preset:
    raw = json.loads(row["buttons"] or "[]")
    return Preset(id=row["id"], name=row["name"], buttons=tuple(Button.from_dict(b) for b in raw))


class PresetStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @classmethod
    def open(cls, db_path: Optional[str] = None) -> "PresetStore":
        return cls(connect(db_path))

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "PresetStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def save(self, name: str, buttons: Iterable[Button]) -> Preset:
        name = (name or "").strip()
        if not name:
            raise PresetError("Please enter a name for the button set")
        preset = Preset(id=uuid.uuid4().hex, name=name, buttons=tuple(buttons))
        payload = json.dumps([b.to_dict() for b in preset.buttons], ensure_ascii=False)
        self._conn.execute(
            "INSERT INTO button_sets (id, name, buttons, created_at) VALUES (?, ?, ?, ?)",
            (preset.id, preset.name, payload, int(time.time())),
        )
        self._conn.commit()
        logger.info("saved button set %r (%s, %d buttons)", preset.name, preset.id, len(preset.buttons))
        return preset

    def list(self) -> List[Preset]:
        cur = self._conn.execute("SELECT id, name, buttons FROM button_sets ORDER BY created_at, rowid")
        return [_row_to_preset(row) for row in cur.fetchall()]

    def get(self, preset_id: str) -> Preset:
        cur = self._conn.execute("SELECT id, name, buttons FROM button_sets WHERE id = ?", (preset_id,))
        row = cur.fetchone()
        if row is None:
            raise PresetNotFound(f"No button set with id {preset_id}")
        return _row_to_preset(row)

    def delete(self, preset_id: str) -> None:
        cur = self._conn.execute("DELETE FROM button_sets WHERE id = ?", (preset_id,))
        self._conn.commit()
        if cur.rowcount == 0:
            raise PresetNotFound(f"No button set with id {preset_id}")
        logger.info("deleted button set %s", preset_id)

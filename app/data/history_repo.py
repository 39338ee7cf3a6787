from __future__ import annotations

import json
import sqlite3
from typing import Any, List, Mapping

from app.db.database import get_conn
from app.models.vocab import HistoryRecord, VocabEntry

# Columns a caller may write. Anything else is rejected before it reaches SQL.
WRITABLE_COLUMNS = (
    "word", "meaning", "type", "explanation", "example", "example_cn",
    "tags", "phonetic", "audio_url", "image_url", "is_ai", "timestamp",
)
OPTIONAL_COLUMNS = ("audio_url", "image_url", "is_ai")


def entry_to_row(entry: VocabEntry) -> dict[str, Any]:
    return {
        "word": entry.word,
        "meaning": entry.meaning,
        "type": entry.part_of_speech,
        "explanation": entry.explanation,
        "example": entry.example,
        "example_cn": entry.example_cn,
        "tags": json.dumps(list(entry.tags), ensure_ascii=False),
        "phonetic": entry.phonetic,
        "audio_url": entry.audio_url or None,
        "image_url": entry.image_url or None,
        "is_ai": 1 if entry.is_ai else 0,
        "timestamp": entry.searched_at,
    }


def _row_to_record(r: sqlite3.Row) -> HistoryRecord:
    keys = r.keys()
    try:
        tags = tuple(str(t) for t in json.loads(r["tags"] or "[]"))
    except ValueError:
        tags = ()
    entry = VocabEntry(
        word=r["word"],
        meaning=r["meaning"],
        part_of_speech=r["type"],
        explanation=r["explanation"],
        example=r["example"],
        example_cn=r["example_cn"],
        tags=tags,
        phonetic=r["phonetic"],
        audio_url=r["audio_url"] if "audio_url" in keys else None,
        image_url=r["image_url"] if "image_url" in keys else None,
        is_ai=bool(r["is_ai"]) if "is_ai" in keys else False,
        searched_at=r["timestamp"],
    )
    return HistoryRecord(id=r["id"], user_id=r["user_id"], entry=entry)


def _checked(fields: Mapping[str, Any]) -> list[str]:
    cols = list(fields)
    unknown = set(cols) - set(WRITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown history columns: {sorted(unknown)}")
    return cols


class HistoryRepo:
    """Row-level access to the `history` table. Every query is owner-scoped."""

    def list_for_user(self, user_id: int) -> List[HistoryRecord]:
        with get_conn() as conn:
            rows = conn.execute(
                """SELECT * FROM history WHERE user_id = ?
                     ORDER BY timestamp DESC, id DESC""",
                (user_id,),
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def insert(self, user_id: int, fields: Mapping[str, Any]) -> int:
        cols = _checked(fields)
        placeholders = ", ".join("?" for _ in range(len(cols) + 1))
        with get_conn() as conn:
            cur = conn.execute(
                f"INSERT INTO history (user_id, {', '.join(cols)}) VALUES ({placeholders})",
                (user_id, *(fields[c] for c in cols)),
            )
            return int(cur.lastrowid)

    def update(self, record_id: int, user_id: int, fields: Mapping[str, Any]) -> int:
        """Returns the number of rows changed; 0 when the row is gone."""
        cols = _checked(fields)
        assignments = ", ".join(f"{c} = ?" for c in cols)
        with get_conn() as conn:
            cur = conn.execute(
                f"UPDATE history SET {assignments} WHERE id = ? AND user_id = ?",
                (*(fields[c] for c in cols), record_id, user_id),
            )
            return cur.rowcount

    def delete(self, record_id: int, user_id: int) -> None:
        with get_conn() as conn:
            conn.execute("DELETE FROM history WHERE id = ? AND user_id = ?", (record_id, user_id))

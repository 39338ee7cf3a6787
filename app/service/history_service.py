from __future__ import annotations

import sqlite3
from typing import List, Optional, Sequence

from app.data.history_repo import OPTIONAL_COLUMNS, HistoryRepo, entry_to_row
from app.logger import get_service_logger
from app.models.user import User
from app.models.vocab import HistoryRecord, VocabEntry

log = get_service_logger("History")


class PersistenceFailed(Exception): pass


def _is_missing_column(err: sqlite3.Error) -> bool:
    msg = str(err).lower()
    return isinstance(err, sqlite3.OperationalError) and (
        "no such column" in msg or "has no column named" in msg
    )


class HistoryService:
    """Per-user lookup history.

    Every method is a no-op for anonymous callers. Writes never raise: a
    failed save is logged and the caller keeps its previous snapshot.
    """

    def __init__(self, repo: HistoryRepo):
        self.repo = repo

    def list_history(self, user: Optional[User]) -> List[HistoryRecord]:
        if user is None:
            return []
        return self.repo.list_for_user(user.id)

    @staticmethod
    def find(records: Sequence[HistoryRecord], word: str) -> Optional[HistoryRecord]:
        key = word.strip().lower()
        return next((r for r in records if r.key == key), None)

    def save(
        self,
        user: Optional[User],
        entry: VocabEntry,
        loaded: Sequence[HistoryRecord] = (),
    ) -> List[HistoryRecord]:
        """Upsert `entry` by case-insensitive word and return the fresh snapshot.

        `loaded` is the snapshot the caller already holds; a match there is
        updated in place, otherwise a new row is inserted.
        """
        if user is None:
            return []

        existing = self.find(loaded, entry.word)
        fields = entry_to_row(entry.stamped())
        try:
            self._write(user.id, existing, fields)
        except PersistenceFailed as e:
            log.error("save", "History write failed", word=entry.word, user_id=user.id, error=str(e))
            return list(loaded)
        return self.refresh(user, loaded)

    def _write(self, user_id: int, existing: Optional[HistoryRecord], fields: dict) -> None:
        try:
            self._upsert(user_id, existing, fields)
            return
        except sqlite3.Error as e:
            if not _is_missing_column(e):
                raise PersistenceFailed(str(e)) from e
            log.warning("save", "Full save failed, retrying without optional columns", error=str(e))

        reduced = {k: v for k, v in fields.items() if k not in OPTIONAL_COLUMNS}
        try:
            self._upsert(user_id, existing, reduced)
        except sqlite3.Error as e:
            raise PersistenceFailed(str(e)) from e

    def _upsert(self, user_id: int, existing: Optional[HistoryRecord], fields: dict) -> None:
        if existing is not None:
            if self.repo.update(existing.id, user_id, fields):
                return
            log.info("save", "Matched record is gone, inserting", record_id=existing.id, user_id=user_id)
        self.repo.insert(user_id, fields)

    def refresh(
        self, user: Optional[User], loaded: Sequence[HistoryRecord] = ()
    ) -> List[HistoryRecord]:
        """Re-fetch the snapshot, keeping `loaded` if the database is unavailable."""
        try:
            return self.list_history(user)
        except sqlite3.Error as e:
            log.error("refresh", "History fetch failed", user_id=user.id if user else None, error=str(e))
            return list(loaded)

    def delete(
        self, user: Optional[User], record_id: int, loaded: Sequence[HistoryRecord] = ()
    ) -> List[HistoryRecord]:
        if user is None:
            return []
        try:
            self.repo.delete(record_id, user.id)
        except sqlite3.Error as e:
            log.error("delete", "History delete failed", record_id=record_id, user_id=user.id, error=str(e))
        return self.refresh(user, loaded)

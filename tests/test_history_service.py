"""
Tests for per-user history persistence.
"""

import sqlite3

import pytest

from app.data.history_repo import HistoryRepo
from app.models.vocab import VocabEntry
from app.service.history_service import HistoryService


def _entry(word, meaning="m", **kw):
    return VocabEntry(word=word, meaning=meaning, **kw)


@pytest.fixture
def service(db):
    return HistoryService(HistoryRepo())


def test_anonymous_calls_are_noops(service, db):
    assert service.list_history(None) == []
    assert service.save(None, _entry("Vibe")) == []
    assert service.delete(None, 1) == []
    with sqlite3.connect(db) as conn:
        assert conn.execute("SELECT COUNT(*) FROM history").fetchone()[0] == 0


def test_save_inserts_and_round_trips_fields(service, make_user):
    user = make_user()
    entry = _entry(
        "Zephyr", "和风", part_of_speech="noun", explanation="e", example="A gentle zephyr blew.",
        example_cn="一阵和风吹过。", tags=("nature", "天气"), phonetic="/z/",
        audio_url="https://a/z.mp3", is_ai=True,
    )

    records = service.save(user, entry, [])

    assert len(records) == 1
    stored = records[0].entry
    assert records[0].user_id == user.id
    assert stored.word == "Zephyr"
    assert stored.tags == ("nature", "天气")
    assert stored.audio_url == "https://a/z.mp3"
    assert stored.is_ai is True
    assert stored.part_of_speech == "noun"


def test_repeated_lookup_never_grows_history(service, make_user):
    user = make_user()
    records = service.save(user, _entry("Zephyr"), [])
    for _ in range(3):
        records = service.save(user, _entry("Zephyr", "updated"), records)

    assert len(records) == 1
    assert records[0].entry.meaning == "updated"


def test_matching_is_case_insensitive_and_keeps_id(service, make_user):
    user = make_user()
    first = service.save(user, _entry("Vibe"), [])
    second = service.save(user, _entry("vibe", "氛围"), first)

    assert len(second) == 1
    assert second[0].id == first[0].id
    assert second[0].entry.word == "vibe"


def test_history_is_newest_first(service, make_user):
    user = make_user()
    records = service.save(user, _entry("alpha"), [])
    records = service.save(user, _entry("beta"), records)
    records = service.save(user, _entry("gamma"), records)
    assert [r.word for r in records] == ["gamma", "beta", "alpha"]

    records = service.save(user, _entry("Alpha"), records)
    assert [r.word for r in records] == ["Alpha", "gamma", "beta"]


def test_delete_is_scoped_to_owner(service, make_user):
    alice, bob = make_user(), make_user()
    alice_records = service.save(alice, _entry("Zephyr"), [])
    bob_records = service.save(bob, _entry("Zephyr"), [])

    assert service.delete(bob, alice_records[0].id) == bob_records
    assert len(service.list_history(alice)) == 1

    assert service.delete(alice, alice_records[0].id) == []
    assert [r.id for r in service.list_history(bob)] == [bob_records[0].id]


def test_users_do_not_see_each_other(service, make_user):
    alice, bob = make_user(), make_user()
    service.save(alice, _entry("Zephyr"), [])
    assert service.list_history(bob) == []


def test_missing_optional_columns_retry_with_reduced_fields(service, make_user, db):
    user = make_user()
    with sqlite3.connect(db) as conn:
        conn.execute("DROP TABLE history")
        conn.execute(
            """CREATE TABLE history (
                   id INTEGER PRIMARY KEY AUTOINCREMENT, user_id INTEGER NOT NULL,
                   word TEXT NOT NULL, meaning TEXT NOT NULL DEFAULT '', type TEXT NOT NULL DEFAULT '',
                   explanation TEXT NOT NULL DEFAULT '', example TEXT NOT NULL DEFAULT '',
                   example_cn TEXT NOT NULL DEFAULT '', tags TEXT NOT NULL DEFAULT '[]',
                   phonetic TEXT NOT NULL DEFAULT '', timestamp TEXT NOT NULL)"""
        )

    records = service.save(user, _entry("Zephyr", audio_url="https://a/z.mp3", is_ai=True), [])

    assert len(records) == 1
    assert records[0].entry.word == "Zephyr"
    assert records[0].entry.audio_url is None
    assert records[0].entry.is_ai is False

    records = service.save(user, _entry("zephyr", "again", is_ai=True), records)
    assert len(records) == 1
    assert records[0].entry.meaning == "again"


class _BrokenRepo(HistoryRepo):
    def __init__(self, error):
        self.error = error
        self.writes = 0

    def list_for_user(self, user_id):
        return []

    def insert(self, user_id, fields):
        self.writes += 1
        raise self.error

    update = insert


def test_other_database_errors_are_not_retried(make_user):
    repo = _BrokenRepo(sqlite3.IntegrityError("constraint failed"))
    loaded = []
    assert HistoryService(repo).save(make_user(), _entry("Zephyr"), loaded) == loaded
    assert repo.writes == 1


def test_failed_retry_keeps_previous_snapshot(make_user):
    repo = _BrokenRepo(sqlite3.OperationalError("table history has no column named audio_url"))
    assert HistoryService(repo).save(make_user(), _entry("Zephyr"), []) == []
    assert repo.writes == 2


def test_stale_match_is_inserted_again(service, make_user, db):
    user = make_user()
    loaded = service.save(user, _entry("Vibe"), [])
    with sqlite3.connect(db) as conn:
        conn.execute("DELETE FROM history")

    records = service.save(user, _entry("vibe", "氛围"), loaded)

    assert len(records) == 1
    assert records[0].entry.meaning == "氛围"
    assert records[0].id != loaded[0].id


class _LockedRepo(HistoryRepo):
    def __init__(self):
        self.deleted = []

    def list_for_user(self, user_id):
        raise sqlite3.OperationalError("database is locked")

    def delete(self, record_id, user_id):
        self.deleted.append(record_id)


def test_refresh_keeps_snapshot_when_database_is_locked(service, make_user):
    user = make_user()
    loaded = service.save(user, _entry("Zephyr"), [])

    assert HistoryService(_LockedRepo()).refresh(user, loaded) == loaded


def test_delete_keeps_snapshot_when_refetch_fails(service, make_user):
    user = make_user()
    loaded = service.save(user, _entry("Zephyr"), [])
    repo = _LockedRepo()

    assert HistoryService(repo).delete(user, loaded[0].id, loaded) == loaded
    assert repo.deleted == [loaded[0].id]

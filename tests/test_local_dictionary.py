"""
Tests for the curated local dictionary.
"""

from app.data.local_dictionary import LocalDictionary
from app.models.vocab import PHONETIC_PLACEHOLDER, VocabEntry


def test_lookup_is_case_insensitive():
    local = LocalDictionary()
    assert "serendipity" in local
    assert " VIBE " in local
    assert "zephyr" not in local
    assert len(local) == 2
    assert local.words() == ["Serendipity", "Vibe"]


def test_lookup_marks_entry_curated():
    entry = LocalDictionary().lookup("SERENDIPITY")
    assert entry.word == "Serendipity"
    assert entry.is_ai is False
    assert entry.audio_url is None
    assert entry.phonetic == "/ˌser.ənˈdɪp.ə.ti/"
    assert entry.searched_at


def test_missing_phonetic_gets_placeholder():
    local = LocalDictionary((VocabEntry(word="Glimmer", meaning="微光", phonetic=""),))
    assert local.lookup("glimmer").phonetic == PHONETIC_PLACEHOLDER
    assert local.lookup("nothing") is None

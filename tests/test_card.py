"""
Tests for word-card presentation helpers.
"""

import pytest

from app.web.card import PALETTES, card_palette, card_size, word_hash


def test_hash_matches_31_multiplier_for_short_words():
    assert word_hash("ab") == 97 * 31 + 98
    assert word_hash("") == 0


def test_palette_is_deterministic():
    assert card_palette("ab") == PALETTES[3105 % len(PALETTES)]
    assert card_palette("Zephyr") == card_palette("Zephyr")
    assert card_palette("") == PALETTES[0]


@pytest.mark.parametrize(
    "word, size",
    [("Vibe", "xl"), ("Zephyr", "lg"), ("Serendipity", "sm"), ("Ephemeral", "md"), ("", "xl")],
)
def test_card_size(word, size):
    assert card_size(word) == size

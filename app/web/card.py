from __future__ import annotations

# Palette names map to CSS classes in static/style.css.
PALETTES = (
    "sunset", "ocean", "meadow", "lavender",
    "amber", "blossom", "indigo", "lagoon",
)


def _int32(n: int) -> int:
    n &= 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def word_hash(word: str) -> int:
    """31-multiplier string hash with the 32-bit shift overflow of browser JS."""
    h = 0
    for ch in word:
        h = ord(ch) + (_int32(_int32(h) << 5) - h)
    return h


def card_palette(word: str) -> str:
    return PALETTES[abs(word_hash(word or "")) % len(PALETTES)]


def card_size(word: str) -> str:
    n = len(word or "")
    if n <= 4:
        return "xl"
    if n <= 7:
        return "lg"
    if n <= 10:
        return "md"
    return "sm"

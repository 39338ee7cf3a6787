from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

PHONETIC_PLACEHOLDER = "/.../"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class VocabEntry:
    """A resolved word card.

    Two entries describe the same word when their lowercased `word` match;
    `key` is that identity.
    """
    word: str
    meaning: str
    part_of_speech: str = ""
    explanation: str = ""
    example: str = ""
    example_cn: str = ""
    tags: tuple[str, ...] = ()
    phonetic: str = PHONETIC_PLACEHOLDER
    audio_url: str | None = None
    image_url: str | None = None
    is_ai: bool = False
    searched_at: str = field(default_factory=utc_now)

    @property
    def key(self) -> str:
        return self.word.strip().lower()

    def stamped(self) -> "VocabEntry":
        return replace(self, searched_at=utc_now())


@dataclass(frozen=True)
class HistoryRecord:
    """A VocabEntry owned by one user, as stored in the history table."""
    id: int
    user_id: int
    entry: VocabEntry

    @property
    def word(self) -> str:
        return self.entry.word

    @property
    def key(self) -> str:
        return self.entry.key

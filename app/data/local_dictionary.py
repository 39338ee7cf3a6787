from __future__ import annotations

from dataclasses import replace
from typing import Optional

from app.models.vocab import PHONETIC_PLACEHOLDER, VocabEntry, utc_now

# Hand-curated entries. Looked up by lowercased word, no network involved.
_CURATED: tuple[VocabEntry, ...] = (
    VocabEntry(
        word="Serendipity",
        phonetic="/ˌser.ənˈdɪp.ə.ti/",
        meaning="意外的惊喜",
        part_of_speech="noun",
        explanation="就像你在旧大衣口袋里翻出了遗忘已久的钱，或者转角撞见了一本改变你一生的书。",
        example="Finding this shop was pure serendipity.",
        example_cn="发现这家店纯属意外之喜。",
        tags=("美好", "运气"),
        searched_at="",
    ),
    VocabEntry(
        word="Vibe",
        phonetic="/vaɪb/",
        meaning="氛围；感觉",
        part_of_speech="noun",
        explanation="一种看不见但在空气中流动的感觉。走进一个房间，不用说话，你就能感受到那是“chill”还是“tense”。",
        example="I really like this vibe, it makes me feel happy.",
        example_cn="我真的很喜欢这种氛围，它让我感到快乐。",
        tags=("氛围", "流行"),
        searched_at="",
    ),
)


class LocalDictionary:
    def __init__(self, entries: tuple[VocabEntry, ...] = _CURATED):
        self._entries = {e.key: e for e in entries}

    def __contains__(self, word: str) -> bool:
        return word.strip().lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def words(self) -> list[str]:
        return sorted(e.word for e in self._entries.values())

    def lookup(self, word: str) -> Optional[VocabEntry]:
        found = self._entries.get(word.strip().lower())
        if found is None:
            return None
        return replace(
            found,
            phonetic=found.phonetic or PHONETIC_PLACEHOLDER,
            audio_url=None,
            is_ai=False,
            searched_at=utc_now(),
        )

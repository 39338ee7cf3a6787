from __future__ import annotations

import asyncio
from typing import Optional

from app.data.local_dictionary import LocalDictionary
from app.logger import get_service_logger
from app.models.vocab import PHONETIC_PLACEHOLDER, VocabEntry, utc_now
from app.providers.gemini_client import (
    GeminiClient,
    LookupFailed,
    MalformedResponse,
    ResolutionFailed,
)
from app.providers.pronunciation_client import Pronunciation, PronunciationClient

log = get_service_logger("Lookup")

DEFAULT_TAGS = ("AI",)

__all__ = ["LookupResolver", "LookupFailed", "MalformedResponse", "ResolutionFailed", "user_message"]


def user_message(query: str) -> str:
    """The one message shown for any lookup failure."""
    return f'无法解析 "{query.strip()}"。'


class LookupResolver:
    """Resolve a free-text query into a VocabEntry.

    Curated words short-circuit. Everything else needs the generator; the
    pronunciation lookup only decorates the generator's answer.
    """

    def __init__(
        self,
        local: LocalDictionary | None = None,
        pronunciation: PronunciationClient | None = None,
        generator: GeminiClient | None = None,
    ):
        self.local = local or LocalDictionary()
        self.pronunciation = pronunciation or PronunciationClient()
        self.generator = generator or GeminiClient()

    async def resolve(self, query: str) -> Optional[VocabEntry]:
        clean = (query or "").strip()
        if not clean:
            return None

        curated = self.local.lookup(clean)
        if curated is not None:
            log.info("resolve", "Curated hit", word=curated.word)
            return curated

        pron_result, ai_result = await asyncio.gather(
            self.pronunciation.fetch(clean),
            self.generator.define(clean),
            return_exceptions=True,
        )

        if isinstance(pron_result, BaseException):
            log.warning("resolve", "Pronunciation lookup failed", word=clean, error=repr(pron_result))
            pron_result = Pronunciation()

        if isinstance(ai_result, MalformedResponse):
            log.warning("resolve", "Generator returned malformed data", word=clean, error=str(ai_result))
            raise ai_result
        if isinstance(ai_result, LookupFailed):
            log.warning("resolve", "Generator failed", word=clean, error=str(ai_result))
            raise ai_result
        if isinstance(ai_result, BaseException):
            log.error("resolve", "Generator raised unexpectedly", word=clean, error=repr(ai_result))
            raise ResolutionFailed(f"Generator error: {type(ai_result).__name__}") from ai_result

        entry = VocabEntry(
            word=ai_result.word.strip() or clean,
            meaning=ai_result.meaning,
            part_of_speech=ai_result.part_of_speech,
            explanation=ai_result.explanation,
            example=ai_result.example,
            example_cn=ai_result.example_cn,
            tags=tuple(ai_result.tags) if ai_result.tags is not None else DEFAULT_TAGS,
            phonetic=pron_result.phonetic or PHONETIC_PLACEHOLDER,
            audio_url=pron_result.audio_url,
            is_ai=True,
            searched_at=utc_now(),
        )
        log.info("resolve", "Generated entry", word=entry.word, has_audio=bool(entry.audio_url))
        return entry

"""Client for the public dictionary API, used only for phonetics and audio."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from app.config import settings
from app.logger import get_service_logger

log = get_service_logger("Pronunciation")


@dataclass(frozen=True)
class Pronunciation:
    phonetic: str = ""
    audio_url: str = ""

    @property
    def empty(self) -> bool:
        return not (self.phonetic or self.audio_url)


def parse_pronunciation(payload: Any) -> Pronunciation:
    """Pick the first phonetic text and the first non-empty audio URL."""
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], dict):
        return Pronunciation()
    phonetics = payload[0].get("phonetics") or []
    if not isinstance(phonetics, list):
        return Pronunciation()
    text = next((p["text"] for p in phonetics if isinstance(p, dict) and p.get("text")), "")
    audio = next((p["audio"] for p in phonetics if isinstance(p, dict) and p.get("audio")), "")
    if not text:
        text = payload[0].get("phonetic") or ""
    return Pronunciation(phonetic=str(text), audio_url=str(audio))


class PronunciationClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.PRONUNCIATION_URL).rstrip("/")
        self.timeout = timeout or settings.LOOKUP_TIMEOUT_SECONDS
        self._client = client

    async def fetch(self, word: str) -> Pronunciation:
        """Fetch pronunciation data. A 404 means "no data", not an error.

        Transport errors and other non-2xx statuses propagate as httpx errors.
        """
        url = f"{self.base_url}/{quote(word.strip().lower())}"
        if self._client is not None:
            response = await self._client.get(url, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url)

        if response.status_code == 404:
            log.debug("fetch", "No pronunciation found", word=word)
            return Pronunciation()
        response.raise_for_status()
        return parse_pronunciation(response.json())

"""Gemini REST client that turns a word into a structured definition."""

from __future__ import annotations

import json

import httpx
from pydantic import ValidationError

from app.config import settings
from app.logger import get_service_logger
from app.schemas.ai_definition import AiDefinition

log = get_service_logger("Gemini")

PROMPT_TEMPLATE = (
    'Vocabulary tutor backend. Word: "{word}". Return JSON (NO markdown): '
    '{{ "word": "Corrected", "meaning": "Concise Chinese", '
    '"explanation": "Fun Chinese expl (max 60 chars)", "example": "English sentence", '
    '"exampleCn": "Chinese translation", "type": "Part of speech", "tags": ["Tag1"] }}'
)


class LookupFailed(Exception):
    """Base class for failures while resolving a word."""


class ResolutionFailed(LookupFailed):
    """No usable definition: transport error, non-success status, or no data."""


class MalformedResponse(LookupFailed):
    """The generator answered, but not in the agreed JSON shape."""


def build_request_body(word: str) -> dict:
    return {
        "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(word=word)}]}],
        "generationConfig": {"responseMimeType": "application/json"},
    }


def parse_generation(payload: object) -> AiDefinition:
    """Extract and validate the definition from a generateContent response."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponse("Response has no candidate text") from e
    if not isinstance(text, str):
        raise MalformedResponse("Candidate text is not a string")
    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedResponse("Candidate text is not JSON") from e
    if not isinstance(data, dict):
        raise MalformedResponse("Candidate JSON is not an object")
    try:
        return AiDefinition.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"Definition failed validation: {e.error_count()} error(s)") from e


class GeminiClient:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.LOOKUP_TIMEOUT_SECONDS
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def define(self, word: str) -> AiDefinition:
        if not self.api_key:
            raise ResolutionFailed("GEMINI_API_KEY is not configured")

        body = build_request_body(word)
        params = {"key": self.api_key}
        try:
            if self._client is not None:
                response = await self._client.post(self.endpoint, params=params, json=body, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.endpoint, params=params, json=body)
        except httpx.HTTPError as e:
            raise ResolutionFailed(f"Generator request failed: {type(e).__name__}") from e

        if not response.is_success:
            raise ResolutionFailed(f"Generator returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse("Generator body is not JSON") from e

        definition = parse_generation(payload)
        log.debug("define", "Definition generated", word=word, model=self.model)
        return definition

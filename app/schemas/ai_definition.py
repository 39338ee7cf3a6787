from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AiDefinition(BaseModel):
    """Shape the generator is instructed to return.

    Strict mode: numbers are not coerced to strings and a missing field is an
    error, so a half-formed answer never becomes a word card.
    """

    model_config = ConfigDict(strict=True, populate_by_name=True)

    word: str
    meaning: str = Field(min_length=1)
    explanation: str
    example: str
    example_cn: str = Field(alias="exampleCn")
    part_of_speech: str = Field(alias="type")
    tags: Optional[List[str]] = None

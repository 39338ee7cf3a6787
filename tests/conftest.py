"""
Pytest configuration and fixtures for the vocab app tests.
"""

import dataclasses
import os
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment before importing app modules
os.environ.setdefault("GEMINI_API_KEY", "test-api-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.data.local_dictionary import LocalDictionary  # noqa: E402
from app.data.session_repo import SessionRepo  # noqa: E402
from app.data.user_repo import UserRepo  # noqa: E402
from app.providers.pronunciation_client import Pronunciation  # noqa: E402
from app.schemas.ai_definition import AiDefinition  # noqa: E402
from app.service.auth_service import AuthService  # noqa: E402
from app.service.lookup_service import LookupResolver  # noqa: E402

ZEPHYR = {
    "word": "Zephyr",
    "meaning": "和风",
    "type": "noun",
    "explanation": "从西边吹来的温柔小风。",
    "example": "A gentle zephyr blew.",
    "exampleCn": "一阵和风吹过。",
    "tags": ["nature"],
}


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Point the data layer at a fresh sqlite file and create the schema."""
    import app.db.database as database

    patched = dataclasses.replace(database.settings, DB_PATH=tmp_path / "test.db")
    monkeypatch.setattr(database, "settings", patched)
    database.init_db()
    return patched.DB_PATH


@pytest.fixture
def auth_service(db):
    return AuthService(UserRepo(), SessionRepo(), require_confirmation=False)


@pytest.fixture
def make_user(auth_service):
    counter = {"n": 0}

    def _make(email=None, password="secret123"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return auth_service.sign_up(email, password).user

    return _make


@pytest.fixture
def mock_pronunciation():
    client = MagicMock()
    client.fetch = AsyncMock(return_value=Pronunciation(phonetic="/ˈzef.ər/", audio_url="https://audio.example/zephyr.mp3"))
    return client


@pytest.fixture
def mock_generator():
    client = MagicMock()
    client.define = AsyncMock(return_value=AiDefinition.model_validate(ZEPHYR))
    return client


@pytest.fixture
def resolver(mock_pronunciation, mock_generator):
    return LookupResolver(LocalDictionary(), mock_pronunciation, mock_generator)


@pytest.fixture
def rng():
    return random.Random(1234)

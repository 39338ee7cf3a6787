from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

APP_DIR = Path(__file__).resolve().parent


class ConfigError(Exception): pass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    DB_PATH: Path = APP_DIR.parent / "app.db"
    SESSION_COOKIE_NAME: str = "session_token"
    CLIENT_COOKIE_NAME: str = "client_id"
    SESSION_LIFETIME_HOURS: int = 24
    REQUIRE_EMAIL_CONFIRMATION: bool = False

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    PRONUNCIATION_URL: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    LOOKUP_TIMEOUT_SECONDS: float = 8.0

    LOG_LEVEL: str = "INFO"
    TEMPLATES_DIR: Path = APP_DIR / "web" / "templates"
    STATIC_DIR: Path = APP_DIR / "web" / "static"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        try:
            return cls(
                DB_PATH=Path(os.getenv("VOCAB_DB_PATH", str(defaults.DB_PATH))),
                SESSION_COOKIE_NAME=os.getenv("SESSION_COOKIE_NAME", defaults.SESSION_COOKIE_NAME),
                CLIENT_COOKIE_NAME=os.getenv("CLIENT_COOKIE_NAME", defaults.CLIENT_COOKIE_NAME),
                SESSION_LIFETIME_HOURS=int(os.getenv("SESSION_LIFETIME_HOURS", defaults.SESSION_LIFETIME_HOURS)),
                REQUIRE_EMAIL_CONFIRMATION=_env_bool("REQUIRE_EMAIL_CONFIRMATION", defaults.REQUIRE_EMAIL_CONFIRMATION),
                GEMINI_API_KEY=os.getenv("GEMINI_API_KEY", ""),
                GEMINI_MODEL=os.getenv("GEMINI_MODEL", defaults.GEMINI_MODEL),
                GEMINI_BASE_URL=os.getenv("GEMINI_BASE_URL", defaults.GEMINI_BASE_URL).rstrip("/"),
                PRONUNCIATION_URL=os.getenv("PRONUNCIATION_URL", defaults.PRONUNCIATION_URL).rstrip("/"),
                LOOKUP_TIMEOUT_SECONDS=float(os.getenv("LOOKUP_TIMEOUT_SECONDS", defaults.LOOKUP_TIMEOUT_SECONDS)),
                LOG_LEVEL=os.getenv("LOG_LEVEL", defaults.LOG_LEVEL).upper(),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

    def validate(self) -> "Settings":
        if self.LOOKUP_TIMEOUT_SECONDS <= 0:
            raise ConfigError("LOOKUP_TIMEOUT_SECONDS must be positive.")
        if self.SESSION_LIFETIME_HOURS <= 0:
            raise ConfigError("SESSION_LIFETIME_HOURS must be positive.")
        for name in ("GEMINI_BASE_URL", "PRONUNCIATION_URL"):
            if not getattr(self, name).startswith(("http://", "https://")):
                raise ConfigError(f"{name} must be an http(s) URL.")
        if not self.SESSION_COOKIE_NAME or not self.CLIENT_COOKIE_NAME:
            raise ConfigError("Cookie names cannot be empty.")
        return self


settings = Settings.from_env().validate()

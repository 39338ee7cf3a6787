from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

@dataclass(frozen=True)
class User:
    id: int
    email: str
    display_name: str
    email_confirmed: bool
    created_at: str

@dataclass(frozen=True)
class AuthSession:
    user: User
    token: str
    expires_at: str
    refreshed: bool = False

class SessionState(str, Enum):
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"

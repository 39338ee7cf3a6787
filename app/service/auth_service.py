from __future__ import annotations
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.config import settings
from app.data.session_repo import SessionRepo
from app.data.user_repo import UserRepo
from app.logger import get_service_logger
from app.models.user import AuthSession, User
from app.service.security import MIN_PASSWORD_LENGTH, hash_password, new_token, verify_password

log = get_service_logger("Auth")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Backend error texts, worded like a hosted auth provider's so the UI maps them the same way.
INVALID_CREDENTIALS = "Invalid login credentials"
ALREADY_REGISTERED = "User already registered"
PASSWORD_TOO_SHORT = f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
EMAIL_NOT_CONFIRMED = "Email not confirmed"
INVALID_EMAIL = "Unable to validate email address: invalid format"

class AuthError(Exception): pass

@dataclass(frozen=True)
class SignUpResult:
    user: User
    session: Optional[AuthSession]
    confirmation_token: Optional[str] = None

class AuthService:
    """Email/password auth backend: users, sessions, profile, confirmation."""

    def __init__(self, user_repo: UserRepo, session_repo: SessionRepo, require_confirmation: bool | None = None):
        self.user_repo = user_repo
        self.session_repo = session_repo
        self.require_confirmation = (
            settings.REQUIRE_EMAIL_CONFIRMATION if require_confirmation is None else require_confirmation
        )

    def _open_session(self, user: User) -> AuthSession:
        token = new_token()
        expires_at = self.session_repo.create_session(user_id=user.id, token=token)
        return AuthSession(user=user, token=token, expires_at=expires_at)

    def sign_up(self, email: str, password: str) -> SignUpResult:
        email = email.strip()
        if not _EMAIL_RE.match(email):
            raise AuthError(INVALID_EMAIL)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(PASSWORD_TOO_SHORT)
        confirmation = new_token() if self.require_confirmation else None
        try:
            user = self.user_repo.create_user(email, hash_password(password), confirmation_token=confirmation)
        except sqlite3.IntegrityError as e:
            raise AuthError(ALREADY_REGISTERED) from e

        if confirmation:
            # No mail transport here; the link is what a mailer would send.
            log.info("sign_up", "Confirmation pending", user_id=user.id, confirm_path=f"/confirm?token={confirmation}")
            return SignUpResult(user=user, session=None, confirmation_token=confirmation)
        log.info("sign_up", "User registered", user_id=user.id)
        return SignUpResult(user=user, session=self._open_session(user))

    def sign_in(self, email: str, password: str) -> AuthSession:
        found = self.user_repo.get_user_by_email_with_hash(email.strip())
        if not found:
            raise AuthError(INVALID_CREDENTIALS)
        user, stored_hash = found
        if not verify_password(password, stored_hash):
            raise AuthError(INVALID_CREDENTIALS)
        if not user.email_confirmed:
            raise AuthError(EMAIL_NOT_CONFIRMED)
        return self._open_session(user)

    def sign_out(self, token: str) -> None:
        self.session_repo.delete_session(token)

    def get_session(self, token: str | None) -> Optional[AuthSession]:
        """Resolve a token, extending it once less than half its lifetime remains."""
        if not token:
            return None
        found = self.session_repo.get_session(token)
        if found is None:
            return None
        user_id, expires_at = found
        user = self.user_repo.get_user_by_id(user_id)
        if user is None:
            self.session_repo.delete_session(token)
            return None
        half_life = timedelta(hours=self.session_repo.lifetime_hours) / 2
        if expires_at - datetime.now(timezone.utc) < half_life:
            new_expiry = self.session_repo.extend_session(token)
            return AuthSession(user=user, token=token, expires_at=new_expiry, refreshed=True)
        return AuthSession(user=user, token=token, expires_at=expires_at.isoformat())

    def update_profile(self, user_id: int, display_name: str) -> User:
        display_name = display_name.strip()
        if not display_name:
            raise ValueError("Display name cannot be empty.")
        if len(display_name) > 60:
            raise ValueError("Display name too long (max 60).")
        user = self.user_repo.update_display_name(user_id, display_name)
        if not user:
            raise ValueError("User not found.")
        return user

    def confirm_email(self, confirmation_token: str) -> Optional[User]:
        user = self.user_repo.confirm_email(confirmation_token)
        if user:
            log.info("confirm_email", "Email confirmed", user_id=user.id)
        return user

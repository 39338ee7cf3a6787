from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from app.config import settings
from app.db.database import get_conn

class SessionRepo:
    def __init__(self, lifetime_hours: int | None = None):
        self.lifetime_hours = lifetime_hours or settings.SESSION_LIFETIME_HOURS

    def create_session(self, user_id: int, token: str) -> str:
        now = datetime.now(timezone.utc)
        expires = now + timedelta(hours=self.lifetime_hours)
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO sessions (token, user_id, created_at, expires_at)
                     VALUES (?, ?, ?, ?)""",
                (token, user_id, now.isoformat(), expires.isoformat()),
            )
        return expires.isoformat()

    def get_session(self, token: str) -> Optional[Tuple[int, datetime]]:
        """Return (user_id, expires_at) for a live token; expired tokens are purged."""
        with get_conn() as conn:
            row = conn.execute("SELECT user_id, expires_at FROM sessions WHERE token = ?", (token,)).fetchone()
        if not row:
            return None
        expires_at = datetime.fromisoformat(row["expires_at"])
        if expires_at < datetime.now(timezone.utc):
            self.delete_session(token)
            return None
        return int(row["user_id"]), expires_at

    def extend_session(self, token: str) -> str:
        expires = datetime.now(timezone.utc) + timedelta(hours=self.lifetime_hours)
        with get_conn() as conn:
            conn.execute("UPDATE sessions SET expires_at = ? WHERE token = ?", (expires.isoformat(), token))
        return expires.isoformat()

    def delete_session(self, token: str) -> None:
        with get_conn() as conn:
            conn.execute("DELETE FROM sessions WHERE token = ?", (token,))

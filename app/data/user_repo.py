from __future__ import annotations

from typing import Optional, Tuple
from datetime import datetime, timezone
import sqlite3

from app.db.database import get_conn
from app.models.user import User

_USER_COLUMNS = "id, email, display_name, email_confirmed, created_at"

def _to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        display_name=row["display_name"],
        email_confirmed=bool(row["email_confirmed"]),
        created_at=row["created_at"],
    )

class UserRepo:
    def create_user(self, email: str, password_hash: str, confirmation_token: str | None = None) -> User:
        """Insert a user. Raises sqlite3.IntegrityError when the email is taken."""
        now = datetime.now(timezone.utc).isoformat()
        confirmed = 0 if confirmation_token else 1
        with get_conn() as conn:
            cur = conn.execute(
                """INSERT INTO users (email, password_hash, email_confirmed, confirmation_token, created_at)
                     VALUES (?, ?, ?, ?, ?)""",
                (email, password_hash, confirmed, confirmation_token, now),
            )
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (int(cur.lastrowid),)
            ).fetchone()
        return _to_user(row)

    def get_user_by_email_with_hash(self, email: str) -> Optional[Tuple[User, str]]:
        with get_conn() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS}, password_hash FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        if not row:
            return None
        return _to_user(row), row["password_hash"]

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with get_conn() as conn:
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return _to_user(row) if row else None

    def update_display_name(self, user_id: int, display_name: str) -> Optional[User]:
        with get_conn() as conn:
            conn.execute("UPDATE users SET display_name = ? WHERE id = ?", (display_name, user_id))
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return _to_user(row) if row else None

    def confirm_email(self, confirmation_token: str) -> Optional[User]:
        with get_conn() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE confirmation_token = ?",
                (confirmation_token,),
            ).fetchone()
            if not row:
                return None
            conn.execute(
                "UPDATE users SET email_confirmed = 1, confirmation_token = NULL WHERE id = ?",
                (row["id"],),
            )
        return User(
            id=row["id"], email=row["email"], display_name=row["display_name"],
            email_confirmed=True, created_at=row["created_at"],
        )

from __future__ import annotations

from dataclasses import replace
from typing import Callable, List, Optional

from app.logger import get_service_logger
from app.models.user import AuthSession, SessionState, User
from app.service.auth_service import AuthError, AuthService, SignUpResult

log = get_service_logger("Session")

INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"

CONFIRMATION_NOTICE = "注册成功！请前往邮箱点击确认链接，完成后即可登录。"
GENERIC_AUTH_FAILURE = "认证失败，请重试。"

# Checked in order; the first substring found in the backend message wins.
_AUTH_MESSAGES = (
    ("Invalid login", "邮箱或密码不正确。"),
    ("already registered", "该邮箱已被注册，请直接登录。"),
    ("Password", "密码长度至少需要6位。"),
    ("Email not confirmed", "登录失败：您的邮箱尚未验证。请检查收件箱（含垃圾邮件）并点击确认链接。"),
)

SessionListener = Callable[[str, Optional[User]], None]


def localize_auth_error(message: str) -> str:
    for needle, localized in _AUTH_MESSAGES:
        if needle in message:
            return localized
    return GENERIC_AUTH_FAILURE


class AuthFailed(Exception):
    """Auth error with its user-facing message; `str(e)` is the localized text."""

    def __init__(self, backend_message: str):
        self.backend_message = backend_message
        super().__init__(localize_auth_error(backend_message))


class SessionManager:
    """Session state for one browser client.

    Starts UNKNOWN until the first `restore`; listeners hear every transition.
    """

    def __init__(self, auth: AuthService):
        self.auth = auth
        self.state = SessionState.UNKNOWN
        self.session: Optional[AuthSession] = None
        self.notice: Optional[str] = None
        self.show_name_prompt = False
        self._onboarding_done = False
        self._listeners: List[SessionListener] = []

    @property
    def user(self) -> Optional[User]:
        return self.session.user if self.session else None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str) -> None:
        log.debug("emit", "Session event", session_event=event, state=self.state.value)
        for listener in list(self._listeners):
            listener(event, self.user)

    def _authenticate(self, session: AuthSession, event: str) -> None:
        self.session = session
        self.state = SessionState.AUTHENTICATED
        self.notice = None
        if not session.user.display_name and not self._onboarding_done:
            self.show_name_prompt = True
        self._emit(event)

    def _go_anonymous(self, event: Optional[str]) -> None:
        self.session = None
        self.state = SessionState.ANONYMOUS
        self.show_name_prompt = False
        self._onboarding_done = False
        if event:
            self._emit(event)

    def restore(self, token: Optional[str]) -> SessionState:
        """Sync with the backend on page load or when the token changes externally."""
        was = self.state
        current = self.auth.get_session(token)
        if current is None:
            if was is SessionState.AUTHENTICATED:
                self._go_anonymous(SIGNED_OUT)
            elif was is SessionState.UNKNOWN:
                self._go_anonymous(INITIAL_SESSION)
            return self.state

        if was is SessionState.AUTHENTICATED and self.user and self.user.id == current.user.id:
            self.session = current
            if current.refreshed:
                self._emit(TOKEN_REFRESHED)
            return self.state

        self._authenticate(current, INITIAL_SESSION if was is SessionState.UNKNOWN else SIGNED_IN)
        return self.state

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            session = self.auth.sign_in(email, password)
        except AuthError as e:
            log.info("sign_in", "Sign-in rejected", reason=str(e))
            raise AuthFailed(str(e)) from e
        self._authenticate(session, SIGNED_IN)
        return session

    def sign_up(self, email: str, password: str) -> SignUpResult:
        try:
            result = self.auth.sign_up(email, password)
        except AuthError as e:
            log.info("sign_up", "Sign-up rejected", reason=str(e))
            raise AuthFailed(str(e)) from e
        if result.session is None:
            self.notice = CONFIRMATION_NOTICE
            if self.state is SessionState.UNKNOWN:
                self.state = SessionState.ANONYMOUS
        else:
            self._authenticate(result.session, SIGNED_IN)
        return result

    def sign_out(self) -> None:
        if self.session:
            self.auth.sign_out(self.session.token)
        self._go_anonymous(SIGNED_OUT)

    def save_display_name(self, name: str) -> Optional[User]:
        if not self.session or not name.strip():
            return None
        try:
            user = self.auth.update_profile(self.session.user.id, name)
        except ValueError as e:
            log.warning("save_display_name", "Display name rejected", reason=str(e))
            return None
        self.session = replace(self.session, user=user)
        self.dismiss_onboarding()
        self._emit(USER_UPDATED)
        return user

    def dismiss_onboarding(self) -> None:
        self.show_name_prompt = False
        self._onboarding_done = True

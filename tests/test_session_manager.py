"""
Tests for the per-client session state machine.
"""

import pytest

from app.data.session_repo import SessionRepo
from app.data.user_repo import UserRepo
from app.models.user import SessionState
from app.service.auth_service import (
    ALREADY_REGISTERED,
    EMAIL_NOT_CONFIRMED,
    INVALID_CREDENTIALS,
    PASSWORD_TOO_SHORT,
    AuthService,
)
from app.service.session_manager import (
    CONFIRMATION_NOTICE,
    GENERIC_AUTH_FAILURE,
    INITIAL_SESSION,
    SIGNED_IN,
    SIGNED_OUT,
    TOKEN_REFRESHED,
    USER_UPDATED,
    AuthFailed,
    SessionManager,
    localize_auth_error,
)


@pytest.fixture
def manager(auth_service):
    return SessionManager(auth_service)


@pytest.fixture
def events(manager):
    seen = []
    manager.subscribe(lambda event, user: seen.append(event))
    return seen


@pytest.mark.parametrize(
    "backend, localized",
    [
        (INVALID_CREDENTIALS, "邮箱或密码不正确。"),
        (ALREADY_REGISTERED, "该邮箱已被注册，请直接登录。"),
        (PASSWORD_TOO_SHORT, "密码长度至少需要6位。"),
        (EMAIL_NOT_CONFIRMED, "登录失败：您的邮箱尚未验证。请检查收件箱（含垃圾邮件）并点击确认链接。"),
        ("Something odd happened", GENERIC_AUTH_FAILURE),
    ],
)
def test_localize_auth_error(backend, localized):
    assert localize_auth_error(backend) == localized


def test_starts_unknown_then_anonymous(manager, events):
    assert manager.state is SessionState.UNKNOWN
    assert manager.restore(None) is SessionState.ANONYMOUS
    assert events == [INITIAL_SESSION]
    manager.restore(None)
    assert events == [INITIAL_SESSION]


def test_restore_existing_token(manager, events, auth_service):
    token = auth_service.sign_up("a@example.com", "secret123").session.token
    assert manager.restore(token) is SessionState.AUTHENTICATED
    assert manager.user.email == "a@example.com"
    assert events == [INITIAL_SESSION]


def test_sign_in_and_out(manager, events, auth_service):
    auth_service.sign_up("a@example.com", "secret123")
    manager.restore(None)
    manager.sign_in("a@example.com", "secret123")
    assert manager.state is SessionState.AUTHENTICATED

    token = manager.session.token
    manager.sign_out()
    assert manager.state is SessionState.ANONYMOUS
    assert manager.user is None
    assert auth_service.get_session(token) is None
    assert events == [INITIAL_SESSION, SIGNED_IN, SIGNED_OUT]


def test_failed_sign_in_is_localized(manager, auth_service):
    auth_service.sign_up("a@example.com", "secret123")
    with pytest.raises(AuthFailed) as exc_info:
        manager.sign_in("a@example.com", "wrong")
    assert str(exc_info.value) == "邮箱或密码不正确。"
    assert exc_info.value.backend_message == INVALID_CREDENTIALS
    assert manager.state is not SessionState.AUTHENTICATED


def test_sign_up_with_confirmation_stays_anonymous(db):
    manager = SessionManager(AuthService(UserRepo(), SessionRepo(), require_confirmation=True))
    result = manager.sign_up("c@example.com", "secret123")
    assert result.session is None
    assert manager.state is SessionState.ANONYMOUS
    assert manager.notice == CONFIRMATION_NOTICE


def test_sign_up_with_session_authenticates(manager, events):
    manager.sign_up("a@example.com", "secret123")
    assert manager.state is SessionState.AUTHENTICATED
    assert events == [SIGNED_IN]


def test_external_sign_out_is_noticed(manager, events, auth_service):
    token = auth_service.sign_up("a@example.com", "secret123").session.token
    manager.restore(token)
    auth_service.sign_out(token)
    manager.restore(token)
    assert manager.state is SessionState.ANONYMOUS
    assert events == [INITIAL_SESSION, SIGNED_OUT]


def test_token_refresh_event(manager, events, auth_service, monkeypatch):
    token = auth_service.sign_up("a@example.com", "secret123").session.token
    manager.restore(token)
    original = auth_service.get_session

    def refreshed(tok):
        session = original(tok)
        return session.__class__(user=session.user, token=session.token, expires_at=session.expires_at, refreshed=True)

    monkeypatch.setattr(auth_service, "get_session", refreshed)
    manager.restore(token)
    assert events == [INITIAL_SESSION, TOKEN_REFRESHED]


def test_onboarding_prompt_for_new_user(manager, events):
    manager.sign_up("a@example.com", "secret123")
    assert manager.show_name_prompt is True

    assert manager.save_display_name("   ") is None
    assert manager.show_name_prompt is True

    user = manager.save_display_name("Momo")
    assert user.display_name == "Momo"
    assert manager.user.display_name == "Momo"
    assert manager.show_name_prompt is False
    assert events[-1] == USER_UPDATED


def test_skipped_onboarding_does_not_return(manager, auth_service):
    token = auth_service.sign_up("a@example.com", "secret123").session.token
    manager.restore(token)
    assert manager.show_name_prompt is True
    manager.dismiss_onboarding()
    manager.restore(token)
    assert manager.show_name_prompt is False


def test_named_user_gets_no_prompt(manager, auth_service, make_user):
    user = make_user("named@example.com")
    auth_service.update_profile(user.id, "Momo")
    manager.sign_in("named@example.com", "secret123")
    assert manager.show_name_prompt is False


def test_unsubscribe(manager):
    seen = []
    unsubscribe = manager.subscribe(lambda event, user: seen.append(event))
    unsubscribe()
    manager.restore(None)
    assert seen == []

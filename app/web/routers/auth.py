from __future__ import annotations
from fastapi import APIRouter, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse

from app.config import settings
from app.service.session_manager import AuthFailed
from app.web.dependencies import auth_service, get_client_state, remember_client, sync_session, templates

router = APIRouter()

def _auth_page(request: Request, client_id: str, mode: str, error: str | None = None,
               notice: str | None = None, status_code: int = 200):
    resp = templates.TemplateResponse(
        request,
        "auth.html",
        {"user": None, "mode": mode, "error": error, "notice": notice},
        status_code=status_code,
    )
    return remember_client(request, resp, client_id)

def _signed_in_redirect(request: Request, client_id: str, token: str) -> RedirectResponse:
    resp = RedirectResponse(url="/", status_code=303)
    resp.set_cookie(settings.SESSION_COOKIE_NAME, token, httponly=True, samesite="lax")
    return remember_client(request, resp, client_id)

@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request):
    client_id, _ = get_client_state(request)
    return _auth_page(request, client_id, "login")

@router.post("/login")
def login(request: Request, email: str = Form(...), password: str = Form(...)):
    client_id, state = get_client_state(request)
    try:
        session = state.session.sign_in(email, password)
    except AuthFailed as e:
        return _auth_page(request, client_id, "login", error=str(e), status_code=400)
    return _signed_in_redirect(request, client_id, session.token)

@router.get("/register", response_class=HTMLResponse)
def register_form(request: Request):
    client_id, _ = get_client_state(request)
    return _auth_page(request, client_id, "register")

@router.post("/register")
def register(request: Request, email: str = Form(...), password: str = Form(...)):
    client_id, state = get_client_state(request)
    try:
        result = state.session.sign_up(email, password)
    except AuthFailed as e:
        return _auth_page(request, client_id, "register", error=str(e), status_code=400)
    if result.session is None:
        return _auth_page(request, client_id, "login", notice=state.session.notice)
    return _signed_in_redirect(request, client_id, result.session.token)

@router.get("/confirm", response_class=HTMLResponse)
def confirm(request: Request, token: str = ""):
    client_id, _ = get_client_state(request)
    user = auth_service.confirm_email(token) if token else None
    if user is None:
        return _auth_page(request, client_id, "login", error="确认链接无效或已过期。", status_code=400)
    return _auth_page(request, client_id, "login", notice="邮箱已验证，请登录。")

@router.post("/logout")
def logout(request: Request):
    client_id, state = get_client_state(request)
    sync_session(request, state)
    state.session.sign_out()
    resp = RedirectResponse(url="/", status_code=303)
    resp.delete_cookie(settings.SESSION_COOKIE_NAME)
    return remember_client(request, resp, client_id)

@router.post("/onboarding/name")
def onboarding_name(request: Request, display_name: str = Form("")):
    client_id, state = get_client_state(request)
    sync_session(request, state)
    state.session.save_display_name(display_name)
    return remember_client(request, RedirectResponse(url="/", status_code=303), client_id)

@router.post("/onboarding/skip")
def onboarding_skip(request: Request):
    client_id, state = get_client_state(request)
    sync_session(request, state)
    state.session.dismiss_onboarding()
    return remember_client(request, RedirectResponse(url="/", status_code=303), client_id)

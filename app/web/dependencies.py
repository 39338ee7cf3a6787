from __future__ import annotations
import uuid
from typing import Optional, Tuple

from fastapi import Request, Response
from fastapi.templating import Jinja2Templates

from app.config import settings
from app.data.session_repo import SessionRepo
from app.data.user_repo import UserRepo
from app.models.user import User
from app.service.auth_service import AuthService
from app.service.session_manager import SessionManager
from app.web.card import card_palette, card_size
from app.web.state import ClientStore, ViewState

templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR))
templates.env.globals.update(card_palette=card_palette, card_size=card_size)

auth_service = AuthService(UserRepo(), SessionRepo())
client_store = ClientStore(lambda: ViewState(SessionManager(auth_service)))

def get_client_state(request: Request) -> Tuple[str, ViewState]:
    client_id = request.cookies.get(settings.CLIENT_COOKIE_NAME) or uuid.uuid4().hex
    return client_id, client_store.get(client_id)

def sync_session(request: Request, state: ViewState) -> Optional[User]:
    state.session.restore(request.cookies.get(settings.SESSION_COOKIE_NAME))
    return state.session.user

def remember_client(request: Request, response: Response, client_id: str) -> Response:
    if request.cookies.get(settings.CLIENT_COOKIE_NAME) != client_id:
        response.set_cookie(settings.CLIENT_COOKIE_NAME, client_id, httponly=True, samesite="lax")
    return response

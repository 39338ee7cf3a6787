from __future__ import annotations
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Form, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse

from app.data.history_repo import HistoryRepo
from app.logger import get_service_logger
from app.models.user import User
from app.models.vocab import VocabEntry
from app.service.history_service import HistoryService
from app.service.lookup_service import LookupFailed, LookupResolver, user_message
from app.web.dependencies import get_client_state, remember_client, sync_session, templates
from app.web.state import ViewState

router = APIRouter()
log = get_service_logger("Web")

lookup_resolver = LookupResolver()
history_service = HistoryService(HistoryRepo())


def _render(request: Request, client_id: str, state: ViewState, status_code: int = 200):
    resp = templates.TemplateResponse(
        request,
        "index.html",
        {
            "user": state.session.user,
            "state": state,
            "session": state.session,
        },
        status_code=status_code,
    )
    return remember_client(request, resp, client_id)


def _home(request: Request, client_id: str) -> RedirectResponse:
    return remember_client(request, RedirectResponse(url="/", status_code=303), client_id)


def persist_lookup(state: ViewState, user: Optional[User], entry: VocabEntry) -> None:
    """Background side effect of a successful lookup; never raises into the request."""
    if user is None:
        return
    state.load_history(history_service.save(user, entry, state.history))


@router.get("/", response_class=HTMLResponse)
def home(request: Request):
    client_id, state = get_client_state(request)
    user = sync_session(request, state)
    state.load_history(history_service.refresh(user, state.history))
    return _render(request, client_id, state)


@router.post("/search", response_class=HTMLResponse)
async def search(request: Request, background_tasks: BackgroundTasks, query: str = Form("")):
    client_id, state = get_client_state(request)
    user = await run_in_threadpool(sync_session, request, state)

    if not query.strip():
        return _render(request, client_id, state)

    seq = state.begin_lookup(query)
    try:
        entry = await lookup_resolver.resolve(query)
    except LookupFailed as e:
        log.info("search", "Lookup failed", query=query.strip(), kind=type(e).__name__)
        state.fail_lookup(seq, user_message(query))
        return _render(request, client_id, state)

    if state.complete_lookup(seq, entry) and entry is not None and user is not None:
        background_tasks.add_task(persist_lookup, state, user, entry)
    return _render(request, client_id, state)


@router.post("/flashback/open")
def open_flashback(request: Request):
    client_id, state = get_client_state(request)
    state.open_flashback()
    return _home(request, client_id)


@router.post("/history/{record_id}/open")
def open_history_item(request: Request, record_id: int):
    client_id, state = get_client_state(request)
    record = state.find_record(record_id)
    if record is not None:
        state.open_record(record)
    return _home(request, client_id)


@router.post("/history/{record_id}/delete")
def delete_history_item(request: Request, record_id: int):
    client_id, state = get_client_state(request)
    user = sync_session(request, state)
    state.load_history(history_service.delete(user, record_id, state.history))
    return _home(request, client_id)


@router.post("/reset")
def reset(request: Request):
    """Logo click: drop the current card and refetch history."""
    client_id, state = get_client_state(request)
    state.reset()
    return _home(request, client_id)


@router.get("/api/lookup")
async def api_lookup(q: str = ""):
    try:
        entry = await lookup_resolver.resolve(q)
    except LookupFailed:
        raise HTTPException(status_code=422, detail=user_message(q))
    if entry is None:
        return {"result": None}
    data = asdict(entry)
    data["tags"] = list(entry.tags)
    return {"result": data}

from __future__ import annotations

from collections import OrderedDict
from typing import Callable, List, Optional, Sequence

from app.logger import get_service_logger
from app.models.user import User
from app.models.vocab import HistoryRecord, VocabEntry
from app.service.flashback import FlashbackSelector
from app.service.session_manager import SIGNED_OUT, SessionManager

log = get_service_logger("ViewState")


class ViewState:
    """Everything one browser client sees, changed only through the methods below.

    Lookups are numbered; a completion for anything but the newest number is
    dropped so a slow answer never replaces a fresher one.
    """

    def __init__(self, session: SessionManager, selector: FlashbackSelector | None = None):
        self.session = session
        self.selector = selector or FlashbackSelector()
        self.query = ""
        self.result: Optional[VocabEntry] = None
        self.error: Optional[str] = None
        self.flashback: Optional[HistoryRecord] = None
        self.history: List[HistoryRecord] = []
        self._seq = 0
        session.subscribe(self.on_session_event)

    def begin_lookup(self, query: str) -> int:
        self._seq += 1
        self.query = query.strip()
        self.result = None
        self.error = None
        self.flashback = None
        return self._seq

    def complete_lookup(self, seq: int, entry: Optional[VocabEntry]) -> bool:
        if seq != self._seq:
            log.debug("complete_lookup", "Dropping superseded result", seq=seq, latest=self._seq)
            return False
        self.result = entry
        return True

    def fail_lookup(self, seq: int, message: str) -> bool:
        if seq != self._seq:
            log.debug("fail_lookup", "Dropping superseded failure", seq=seq, latest=self._seq)
            return False
        self.error = message
        return True

    def load_history(self, records: Sequence[HistoryRecord]) -> None:
        self.history = list(records)
        if self.result is None and self.error is None:
            self.flashback = self.selector.pick(self.history)
        else:
            self.flashback = None

    def find_record(self, record_id: int) -> Optional[HistoryRecord]:
        return next((r for r in self.history if r.id == record_id), None)

    def open_record(self, record: HistoryRecord) -> None:
        self.query = record.word
        self.result = record.entry
        self.error = None
        self.flashback = None

    def open_flashback(self) -> bool:
        if self.flashback is None:
            return False
        self.open_record(self.flashback)
        return True

    def reset(self) -> None:
        self._seq += 1
        self.query = ""
        self.result = None
        self.error = None

    def on_session_event(self, event: str, user: Optional[User]) -> None:
        if event == SIGNED_OUT:
            self.history = []
            self.flashback = None


class ClientStore:
    """In-memory ViewState per client id, evicting the least recently used."""

    def __init__(self, factory: Callable[[], ViewState], max_clients: int = 1000):
        self.factory = factory
        self.max_clients = max_clients
        self._states: "OrderedDict[str, ViewState]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._states)

    def get(self, client_id: str) -> ViewState:
        state = self._states.get(client_id)
        if state is None:
            state = self.factory()
            self._states[client_id] = state
            while len(self._states) > self.max_clients:
                self._states.popitem(last=False)
        else:
            self._states.move_to_end(client_id)
        return state

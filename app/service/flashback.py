from __future__ import annotations

import random
from typing import Optional, Sequence

from app.models.vocab import HistoryRecord


class FlashbackSelector:
    """Resurface one random saved word while nothing else is on screen."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def pick(
        self,
        records: Sequence[HistoryRecord],
        has_result: bool = False,
        has_error: bool = False,
    ) -> Optional[HistoryRecord]:
        if has_result or has_error or not records:
            return None
        return self.rng.choice(list(records))

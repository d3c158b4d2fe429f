from __future__ import annotations

import time
from typing import Iterable, Sequence

from common.models import MatchRecord, MatchResult


def now_ms() -> int:
    return int(time.time() * 1000)


def recent_first(history: Iterable[MatchRecord] | None) -> list[MatchRecord]:
    """Return a new list ordered newest first.

    Equal timestamps: the record inserted later counts as more recent.
    """

    indexed = list(enumerate(history or ()))
    indexed.sort(key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
    return [record for _, record in indexed]


def count_results(records: Sequence[MatchRecord], result: MatchResult) -> int:
    return sum(1 for r in records if r.result == result)

"""Cooldown ("ban") derived from an account's most recent loss.

A loss locks the account for BAN_DURATION_MS counted from that loss. Only the
newest loss matters; earlier ones are superseded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from common.models import MatchRecord, MatchResult
from engine.history import now_ms, recent_first


BAN_DURATION_MS = 3 * 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class BanStatus:
    is_banned: bool
    ban_expires_at: int | None = None

    def as_dict(self) -> dict[str, object]:
        return {"is_banned": self.is_banned, "ban_expires_at": self.ban_expires_at}


NOT_BANNED = BanStatus(is_banned=False, ban_expires_at=None)


def latest_loss(history: Iterable[MatchRecord] | None) -> MatchRecord | None:
    for record in recent_first(history):
        if record.result == MatchResult.LOSS:
            return record
    return None


def compute_ban_status(history: Iterable[MatchRecord] | None, now: int | None = None) -> BanStatus:
    """Return whether the newest loss still locks the account at `now` (ms)."""

    loss = latest_loss(history)
    if loss is None:
        return NOT_BANNED

    now = now_ms() if now is None else int(now)
    expiry = loss.timestamp + BAN_DURATION_MS
    if expiry > now:
        return BanStatus(is_banned=True, ban_expires_at=expiry)
    return NOT_BANNED


def remaining_ms(status: BanStatus, now: int | None = None) -> int:
    if not status.is_banned or status.ban_expires_at is None:
        return 0
    now = now_ms() if now is None else int(now)
    return max(0, status.ban_expires_at - now)


def ban_progress(status: BanStatus, now: int | None = None) -> float:
    """Percentage of the cooldown already served, 0 when not banned."""

    if not status.is_banned:
        return 0.0
    served = BAN_DURATION_MS - remaining_ms(status, now)
    return min(100.0, max(0.0, served / BAN_DURATION_MS * 100.0))

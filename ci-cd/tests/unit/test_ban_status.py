from __future__ import annotations

from common.models import MatchRecord
from engine.ban_status import (
    BAN_DURATION_MS,
    ban_progress,
    compute_ban_status,
    latest_loss,
    remaining_ms,
)
from engine.history import recent_first


T = 1_700_000_000_000
D = BAN_DURATION_MS


def _rec(mid: str, result: str, ts: int) -> MatchRecord:
    return MatchRecord(id=mid, result=result, timestamp=ts)


def test_duration_is_three_days() -> None:
    assert D == 259_200_000


def test_no_loss_is_never_banned() -> None:
    assert compute_ban_status([], now=T).is_banned is False
    assert compute_ban_status(None, now=T).ban_expires_at is None

    wins = [_rec("m1", "WIN", T - 1000), _rec("m2", "WIN", T - 500)]
    status = compute_ban_status(wins, now=T)
    assert status.is_banned is False
    assert status.ban_expires_at is None


def test_ban_window_edges() -> None:
    history = [_rec("m1", "WIN", T - 10), _rec("m2", "LOSS", T)]

    inside = compute_ban_status(history, now=T + D - 1)
    assert inside.is_banned is True
    assert inside.ban_expires_at == T + D

    assert compute_ban_status(history, now=T + D).is_banned is False
    after = compute_ban_status(history, now=T + D + 1)
    assert after.is_banned is False
    assert after.ban_expires_at is None


def test_only_most_recent_loss_by_timestamp_counts() -> None:
    # Inserted out of order: the newest loss by timestamp is m1.
    history = [
        _rec("m1", "LOSS", T),
        _rec("m2", "LOSS", T - D),
        _rec("m3", "WIN", T + 1000),
    ]
    assert latest_loss(history).id == "m1"

    status = compute_ban_status(history, now=T + 1000)
    assert status.ban_expires_at == T + D


def test_old_loss_does_not_ban_once_expired() -> None:
    history = [_rec("m1", "LOSS", T), _rec("m2", "WIN", T + 1)]
    assert compute_ban_status(history, now=T + D + 5).is_banned is False


def test_idempotent_and_does_not_mutate_input() -> None:
    history = [_rec("m2", "LOSS", T), _rec("m1", "WIN", T - 5)]
    before = list(history)
    assert compute_ban_status(history, now=T) == compute_ban_status(history, now=T)
    assert history == before


def test_equal_timestamps_prefer_later_insertion() -> None:
    history = [_rec("first", "LOSS", T), _rec("second", "WIN", T)]
    assert [r.id for r in recent_first(history)] == ["second", "first"]


def test_progress_and_remaining() -> None:
    status = compute_ban_status([_rec("m1", "LOSS", T)], now=T)
    assert remaining_ms(status, now=T + D // 2) == D // 2
    assert ban_progress(status, now=T + D // 2) == 50.0
    assert ban_progress(status, now=T + 2 * D) == 100.0

    idle = compute_ban_status([], now=T)
    assert remaining_ms(idle, now=T) == 0
    assert ban_progress(idle, now=T) == 0.0

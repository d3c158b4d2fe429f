from __future__ import annotations

import pytest

from common.models import Account, MatchRecord, MatchResult, Platform, Rank
from store.stats import account_stats, overall_stats


T = 1_700_000_000_000


def _account(aid: str, results: str, *, rank: Rank = Rank.GOLD, platform: Platform = Platform.WECHAT) -> Account:
    history = [
        MatchRecord(id=f"{aid}-{i}", result="WIN" if ch == "W" else "LOSS", timestamp=T + i)
        for i, ch in enumerate(results)
    ]
    return Account(id=aid, name=aid, rank=rank, platform=platform, history=history)


def test_account_stats_counts_and_trend() -> None:
    stats = account_stats(_account("a", "WLWW"))
    assert (stats.wins, stats.losses, stats.total) == (3, 1, 4)
    assert stats.win_rate == pytest.approx(75.0)
    assert stats.trend == pytest.approx([100.0, 50.0, 66.666, 75.0], rel=1e-3)
    assert stats.recent == [MatchResult.WIN, MatchResult.LOSS, MatchResult.WIN, MatchResult.WIN]


def test_account_stats_windows() -> None:
    stats = account_stats(_account("a", "L" * 5 + "W" * 20))
    assert len(stats.trend) == 20
    assert stats.trend[-1] == pytest.approx(100.0)
    assert stats.recent == [MatchResult.WIN] * 10


def test_empty_account_stats() -> None:
    stats = account_stats(_account("a", ""))
    assert stats.total == 0
    assert stats.win_rate == 0.0
    assert stats.trend == []


def test_overall_stats() -> None:
    accounts = [
        _account("a", "WW", rank=Rank.KING, platform=Platform.QQ),
        _account("b", "LL", rank=Rank.KING, platform=Platform.WECHAT).model_copy(
            update={"is_banned": True, "ban_expires_at": T}
        ),
        _account("c", "", rank=Rank.BRONZE, platform=Platform.WECHAT),
    ]
    stats = overall_stats(accounts)
    assert stats.total_accounts == 3
    assert stats.banned_accounts == 1
    assert stats.total_games == 4
    assert stats.win_rate == pytest.approx(50.0)
    assert stats.main_platform is Platform.WECHAT
    assert list(stats.rank_distribution) == list(Rank)
    assert stats.rank_distribution[Rank.KING] == 2
    assert stats.rank_distribution[Rank.SILVER] == 0
    assert stats.platform_win_rates[Platform.QQ] == pytest.approx(100.0)
    assert stats.platform_win_rates[Platform.WECHAT] == pytest.approx(0.0)


def test_main_platform_tie_is_wechat() -> None:
    accounts = [_account("a", "", platform=Platform.QQ), _account("b", "", platform=Platform.WECHAT)]
    assert overall_stats(accounts).main_platform is Platform.WECHAT
    assert overall_stats([]).total_accounts == 0

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from common.models import Account, MatchRecord, MatchResult, Platform, Rank
from engine.history import count_results, recent_first


TREND_WINDOW = 20
RECENT_WINDOW = 10


def win_rate(records: Sequence[MatchRecord]) -> float:
    if not records:
        return 0.0
    return count_results(records, MatchResult.WIN) / len(records) * 100


@dataclass(frozen=True)
class AccountStats:
    wins: int
    losses: int
    total: int
    win_rate: float
    # Cumulative win rate after each of the last TREND_WINDOW games, oldest first.
    trend: list[float] = field(default_factory=list)
    # Last RECENT_WINDOW results, oldest first.
    recent: list[MatchResult] = field(default_factory=list)


@dataclass(frozen=True)
class OverallStats:
    total_accounts: int
    banned_accounts: int
    total_games: int
    win_rate: float
    main_platform: Platform
    rank_distribution: dict[Rank, int]
    platform_win_rates: dict[Platform, float]


def account_stats(account: Account) -> AccountStats:
    history = account.history
    wins = count_results(history, MatchResult.WIN)
    losses = count_results(history, MatchResult.LOSS)

    newest_first = recent_first(history)
    chronological = list(reversed(newest_first[:TREND_WINDOW]))
    trend: list[float] = []
    running_wins = 0
    for idx, record in enumerate(chronological, start=1):
        if record.result == MatchResult.WIN:
            running_wins += 1
        trend.append(running_wins / idx * 100)

    recent = [r.result for r in reversed(newest_first[:RECENT_WINDOW])]
    return AccountStats(
        wins=wins,
        losses=losses,
        total=wins + losses,
        win_rate=win_rate(history),
        trend=trend,
        recent=recent,
    )


def overall_stats(accounts: Sequence[Account]) -> OverallStats:
    all_history = [record for acc in accounts for record in acc.history]

    per_platform = {p: [acc for acc in accounts if acc.platform == p] for p in Platform}
    main_platform = (
        Platform.WECHAT
        if len(per_platform[Platform.WECHAT]) >= len(per_platform[Platform.QQ])
        else Platform.QQ
    )

    rank_distribution = {rank: 0 for rank in Rank}
    for acc in accounts:
        rank_distribution[acc.rank] += 1

    platform_win_rates = {
        p: win_rate([record for acc in members for record in acc.history])
        for p, members in per_platform.items()
    }

    return OverallStats(
        total_accounts=len(accounts),
        banned_accounts=sum(1 for acc in accounts if acc.is_banned),
        total_games=len(all_history),
        win_rate=win_rate(all_history),
        main_platform=main_platform,
        rank_distribution=rank_distribution,
        platform_win_rates=platform_win_rates,
    )

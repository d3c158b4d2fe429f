from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from common.models import MatchRecord, MatchResult
from engine.history import count_results, recent_first


DEFAULT_RULE_CONFIG: dict[str, Any] = {
    # Loss streak
    "streak_min_length": 2,
    "weight_per_streak_loss": 15,
    # Recent win rate
    "recent_window": 10,
    "very_low_win_rate_pct": 20,
    "low_win_rate_pct": 40,
    "weight_very_low_win_rate": 50,
    "weight_low_win_rate": 30,
    # Short-window density
    "density_window": 5,
    "density_min_losses": 4,
    "weight_density": 35,
}

MIN_SAMPLE = 3
MAX_SCORE = 100

INSUFFICIENT_SAMPLE = "insufficient sample"

_DESCRIPTIONS: list[tuple[int, str]] = [
    (
        75,
        "Very high risk: the account looks stuck in a losing matchmaking pool. "
        "Stop ranked play now and take at least a day off.",
    ),
    (
        45,
        "Elevated risk: recent results suggest matchmaking is balancing against you. "
        "Play carefully and stop while you are ahead.",
    ),
    (21, "Slight risk: keep a steady mindset."),
    (0, "Account environment looks healthy."),
]


class RiskLevel(str, Enum):
    SAFE = "SAFE"
    WARNING = "WARNING"
    DANGER = "DANGER"


@dataclass(frozen=True)
class RuleResult:
    rule_id: str
    triggered: bool
    weight: int
    reason: str | None = None


@dataclass(frozen=True)
class RiskAnalysis:
    score: int
    level: RiskLevel
    reasons: list[str] = field(default_factory=list)
    description: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "reasons": list(self.reasons),
            "description": self.description,
        }


def rule_loss_streak(recent: Sequence[MatchRecord], cfg: dict[str, Any]) -> RuleResult:
    """Consecutive losses counted back from the newest game."""

    streak = 0
    for record in recent:
        if record.result != MatchResult.LOSS:
            break
        streak += 1

    triggered = streak >= int(cfg["streak_min_length"])
    if not triggered:
        return RuleResult("loss_streak", False, 0)
    return RuleResult(
        "loss_streak",
        True,
        streak * int(cfg["weight_per_streak_loss"]),
        f"current loss streak of {streak}",
    )


def rule_recent_win_rate(recent: Sequence[MatchRecord], cfg: dict[str, Any]) -> RuleResult:
    """Win rate over the last N games; two severity bands."""

    window = list(recent[: int(cfg["recent_window"])])
    if not window:
        return RuleResult("recent_win_rate", False, 0)

    win_rate = count_results(window, MatchResult.WIN) / len(window) * 100
    if win_rate <= float(cfg["very_low_win_rate_pct"]):
        return RuleResult(
            "recent_win_rate",
            True,
            int(cfg["weight_very_low_win_rate"]),
            "extremely low recent win rate",
        )
    if win_rate <= float(cfg["low_win_rate_pct"]):
        return RuleResult(
            "recent_win_rate", True, int(cfg["weight_low_win_rate"]), "low recent win rate"
        )
    return RuleResult("recent_win_rate", False, 0)


def rule_loss_density(recent: Sequence[MatchRecord], cfg: dict[str, Any]) -> RuleResult:
    window_size = int(cfg["density_window"])
    min_losses = int(cfg["density_min_losses"])
    losses = count_results(recent[:window_size], MatchResult.LOSS)
    triggered = losses >= min_losses
    return RuleResult(
        "loss_density",
        triggered,
        int(cfg["weight_density"]) if triggered else 0,
        f"{min_losses}+ losses in last {window_size} games" if triggered else None,
    )


# Evaluation order fixes the order of reasons.
RULES: list[Callable[[Sequence[MatchRecord], dict[str, Any]], RuleResult]] = [
    rule_loss_streak,
    rule_recent_win_rate,
    rule_loss_density,
]


def level_for_score(score: int) -> RiskLevel:
    if score >= 75:
        return RiskLevel.DANGER
    if score >= 45:
        return RiskLevel.WARNING
    return RiskLevel.SAFE


def describe_score(score: int) -> str:
    """Human-readable text for a score.

    The bands are finer than RiskLevel: 21-44 stays SAFE but reads as mild
    risk. Branch on the level, not on this text.
    """

    for floor, text in _DESCRIPTIONS:
        if score >= floor:
            return text
    return _DESCRIPTIONS[-1][1]


def compute_risk_index(
    history: Iterable[MatchRecord] | None,
    *,
    cfg: dict[str, Any] | None = None,
) -> RiskAnalysis:
    """Score recent-history patterns into a 0-100 risk index."""

    cfg = DEFAULT_RULE_CONFIG if cfg is None else {**DEFAULT_RULE_CONFIG, **cfg}

    recent = recent_first(history)
    if len(recent) < MIN_SAMPLE:
        return RiskAnalysis(score=0, level=RiskLevel.SAFE, reasons=[], description=INSUFFICIENT_SAMPLE)

    score = 0
    reasons: list[str] = []
    for rule_fn in RULES:
        result = rule_fn(recent, cfg)
        if result.triggered:
            score += int(result.weight)
            if result.reason:
                reasons.append(result.reason)

    score = max(0, min(MAX_SCORE, score))
    return RiskAnalysis(
        score=score,
        level=level_for_score(score),
        reasons=reasons,
        description=describe_score(score),
    )


__all__ = [
    "DEFAULT_RULE_CONFIG",
    "INSUFFICIENT_SAMPLE",
    "RiskAnalysis",
    "RiskLevel",
    "RuleResult",
    "compute_risk_index",
    "describe_score",
    "level_for_score",
]

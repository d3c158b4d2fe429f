"""
RankGuard - application settings.

Values come from environment variables with defaults suitable for a local
install, optionally overridden by a YAML file (see config/dev.yaml):

    storage:
      path: data/accounts.json
    advice:
      region: us-east-1
      model_id: anthropic.claude-3-haiku-20240307-v1:0
    risk:
      weight_density: 35
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from common.config_loader import get_nested, load_yaml


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


@dataclass
class StorageConfig:
    path: str = field(
        default_factory=lambda: _env("RANKGUARD_STORAGE_PATH", str(Path("data") / "accounts.json"))
    )


@dataclass
class AdviceConfig:
    region: str = field(default_factory=lambda: _env("AWS_REGION", "us-east-1"))
    model_id: str = field(
        default_factory=lambda: _env(
            "RANKGUARD_ADVICE_MODEL", "anthropic.claude-3-haiku-20240307-v1:0"
        )
    )
    profile: str | None = field(default_factory=lambda: _env("RANKGUARD_AWS_PROFILE") or None)
    max_tokens: int = 200


@dataclass
class RiskConfig:
    """Overrides for risk rule thresholds and weights (DEFAULT_RULE_CONFIG values)."""

    streak_min_length: int = 2
    weight_per_streak_loss: int = 15
    recent_window: int = 10
    very_low_win_rate_pct: int = 20
    low_win_rate_pct: int = 40
    weight_very_low_win_rate: int = 50
    weight_low_win_rate: int = 30
    density_window: int = 5
    density_min_losses: int = 4
    weight_density: int = 35

    def as_dict(self) -> dict[str, int]:
        return {f.name: int(getattr(self, f.name)) for f in fields(self)}


@dataclass
class AppConfig:
    """Top-level config aggregator passed to the CLI commands."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    advice: AdviceConfig = field(default_factory=AdviceConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)


def _apply(section: Any, values: Any) -> None:
    if not isinstance(values, dict):
        return
    known = {f.name: f for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown setting {type(section).__name__}.{key}")
        current = getattr(section, key)
        if isinstance(current, int) and not isinstance(current, bool):
            value = int(value)
        setattr(section, key, value)


def load_settings(config_path: str | Path | None = None) -> AppConfig:
    cfg = AppConfig()
    if config_path is None:
        return cfg

    data = load_yaml(config_path)
    _apply(cfg.storage, get_nested(data, ["storage"], {}))
    _apply(cfg.advice, get_nested(data, ["advice"], {}))
    _apply(cfg.risk, get_nested(data, ["risk"], {}))
    return cfg


__all__ = [
    "AdviceConfig",
    "AppConfig",
    "RiskConfig",
    "StorageConfig",
    "load_settings",
]

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class MatchResult(str, Enum):
    WIN = "WIN"
    LOSS = "LOSS"


class Platform(str, Enum):
    WECHAT = "WECHAT"
    QQ = "QQ"


class Rank(str, Enum):
    """Ranked tiers, declared low to high."""

    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    DIAMOND = "DIAMOND"
    MASTER = "MASTER"
    GRANDMASTER = "GRANDMASTER"
    KING = "KING"

    @property
    def tier(self) -> int:
        return list(Rank).index(self)

    @property
    def label(self) -> str:
        return RANK_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "Rank":
        """Accept an enum name or a legacy display label."""

        text = value.strip()
        for rank, label in RANK_LABELS.items():
            if text == label:
                return rank
        return cls(text.upper())


RANK_LABELS: dict[Rank, str] = {
    Rank.BRONZE: "青铜",
    Rank.SILVER: "白银",
    Rank.GOLD: "黄金",
    Rank.PLATINUM: "铂金",
    Rank.DIAMOND: "钻石",
    Rank.MASTER: "星耀",
    Rank.GRANDMASTER: "最强王者",
    Rank.KING: "荣耀王者",
}


def new_id() -> str:
    return uuid.uuid4().hex


class _WireModel(BaseModel):
    # camelCase on the wire keeps exports readable by the original web app.
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class MatchRecord(_WireModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Opaque identifier, unique within one history")
    result: MatchResult
    timestamp: int = Field(..., ge=0, description="Milliseconds since epoch; sole ordering key")
    hero: str | None = Field(default=None, description="Informational only")

    @field_validator("id")
    @classmethod
    def _strip_and_require_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must be non-empty")
        return value

    @field_validator("hero")
    @classmethod
    def _blank_hero_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class Account(_WireModel):
    # Ban fields are derived; the store swaps in new copies instead of assigning.
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    rank: Rank
    # Records saved before platforms existed carry no platform at all.
    platform: Platform = Platform.WECHAT
    is_banned: bool = False
    ban_expires_at: int | None = None
    history: list[MatchRecord] = Field(default_factory=list)

    @field_validator("id", "name")
    @classmethod
    def _strip_and_require_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must be non-empty")
        return value

    @field_validator("rank", mode="before")
    @classmethod
    def _accept_legacy_rank_label(cls, value: object) -> object:
        if isinstance(value, str) and not isinstance(value, Rank):
            return Rank.parse(value)
        return value

    @field_validator("platform", mode="before")
    @classmethod
    def _missing_platform_defaults(cls, value: object) -> object:
        return Platform.WECHAT if value in (None, "") else value

    @model_validator(mode="after")
    def _match_ids_unique(self) -> "Account":
        seen: set[str] = set()
        for record in self.history:
            if record.id in seen:
                raise ValueError(f"duplicate match id {record.id!r} in history")
            seen.add(record.id)
        return self

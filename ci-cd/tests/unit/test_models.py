from __future__ import annotations

import pytest
from pydantic import ValidationError

from common.models import Account, MatchRecord, MatchResult, Platform, Rank


def test_match_record_strips_id_and_blank_hero() -> None:
    record = MatchRecord(id=" m1 ", result="LOSS", timestamp=5, hero="  ")
    assert record.id == "m1"
    assert record.result is MatchResult.LOSS
    assert record.hero is None


def test_match_record_rejects_blank_id_and_negative_time() -> None:
    with pytest.raises(ValueError, match="non-empty"):
        MatchRecord(id=" ", result="WIN", timestamp=1)
    with pytest.raises(ValidationError):
        MatchRecord(id="m1", result="WIN", timestamp=-1)


def test_account_reads_original_export_shape() -> None:
    account = Account.model_validate(
        {
            "id": "a1",
            "name": "Main",
            "rank": "星耀",
            "isBanned": True,
            "banExpiresAt": 123,
            "history": [{"id": "m1", "result": "WIN", "timestamp": 1}],
        }
    )
    assert account.rank is Rank.MASTER
    assert account.platform is Platform.WECHAT
    assert account.is_banned is True
    assert account.ban_expires_at == 123

    dumped = account.model_dump(mode="json", by_alias=True)
    assert dumped["banExpiresAt"] == 123
    assert dumped["rank"] == "MASTER"


def test_account_rejects_duplicate_match_ids() -> None:
    with pytest.raises(ValueError, match="duplicate match id"):
        Account(
            id="a1",
            name="Main",
            rank=Rank.GOLD,
            history=[
                MatchRecord(id="m1", result="WIN", timestamp=1),
                MatchRecord(id="m1", result="LOSS", timestamp=2),
            ],
        )


def test_rank_order_and_parse() -> None:
    assert [r.tier for r in Rank] == list(range(8))
    assert Rank.KING.tier > Rank.BRONZE.tier
    assert Rank.parse("gold") is Rank.GOLD
    assert Rank.parse("荣耀王者") is Rank.KING
    with pytest.raises(ValueError):
        Rank.parse("IRON")


def test_account_is_frozen() -> None:
    account = Account(id="a1", name="Main", rank=Rank.GOLD)
    with pytest.raises(ValidationError):
        account.is_banned = True
    with pytest.raises(ValidationError):
        account.ban_expires_at = 1

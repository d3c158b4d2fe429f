"""In-memory account registry backed by a JSON file.

Every history mutation funnels through `AccountStore.replace_history`, which
recomputes the cached ban fields and swaps in a new Account record, so the
cache can never disagree with a fresh computation over the stored history.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable

from pydantic import ValidationError

from common.io_utils import read_json, write_json_atomic
from common.logging_utils import get_logger
from common.models import Account, MatchRecord, MatchResult, Platform, Rank, new_id
from engine.ban_status import compute_ban_status
from engine.history import now_ms, recent_first
from engine.risk_rules import RiskAnalysis, compute_risk_index
from store.errors import AccountNotFoundError, MatchNotFoundError, StoreError


logger = get_logger(__name__)

_UNSET: Any = object()


class SortBy(str, Enum):
    UPDATED = "UPDATED"
    RANK = "RANK"
    CUSTOM = "CUSTOM"


def last_played(account: Account) -> int:
    recent = recent_first(account.history)
    return recent[0].timestamp if recent else 0


def with_derived_status(account: Account, now: int) -> Account:
    status = compute_ban_status(account.history, now=now)
    return account.model_copy(
        update={"is_banned": status.is_banned, "ban_expires_at": status.ban_expires_at}
    )


def parse_accounts(payload: Any, *, source: str) -> list[Account]:
    if not isinstance(payload, list):
        raise StoreError(f"{source}: expected a JSON list of accounts")
    try:
        return [Account.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise StoreError(f"{source}: invalid account data: {exc}") from exc


class AccountStore:
    def __init__(
        self,
        path: str | Path | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        risk_cfg: dict[str, Any] | None = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self._clock = clock
        self._risk_cfg = risk_cfg
        self._accounts: list[Account] = []

    # -- persistence -------------------------------------------------------

    def load(self) -> list[Account]:
        if self.path is None or not self.path.exists():
            self._accounts = []
            return self.accounts

        try:
            payload = read_json(self.path)
        except (OSError, ValueError) as exc:
            raise StoreError(f"{self.path}: cannot read accounts: {exc}") from exc

        now = self._clock()
        self._accounts = [
            with_derived_status(acc, now) for acc in parse_accounts(payload, source=str(self.path))
        ]
        logger.info("loaded accounts=%s path=%s", len(self._accounts), self.path)
        return self.accounts

    def save(self) -> None:
        if self.path is None:
            raise StoreError("store has no path to save to")
        write_json_atomic(self.path, self._dump())
        logger.debug("saved accounts=%s path=%s", len(self._accounts), self.path)

    def _dump(self) -> list[dict[str, Any]]:
        return [acc.model_dump(mode="json", by_alias=True) for acc in self._accounts]

    # -- accounts ----------------------------------------------------------

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    def _index(self, account_id: str) -> int:
        for idx, acc in enumerate(self._accounts):
            if acc.id == account_id:
                return idx
        raise AccountNotFoundError(account_id)

    def get(self, account_id: str) -> Account:
        return self._accounts[self._index(account_id)]

    def add_account(self, name: str, rank: Rank, platform: Platform) -> Account:
        account = Account(id=new_id(), name=name, rank=rank, platform=platform)
        self._accounts.insert(0, account)
        logger.info("account added id=%s rank=%s platform=%s", account.id, rank.value, platform.value)
        return account

    def update_account(
        self,
        account_id: str,
        *,
        name: str | None = None,
        rank: Rank | None = None,
        platform: Platform | None = None,
    ) -> Account:
        idx = self._index(account_id)
        current = self._accounts[idx]
        data = current.model_dump()
        if name is not None:
            data["name"] = name
        if rank is not None:
            data["rank"] = rank
        if platform is not None:
            data["platform"] = platform
        try:
            updated = Account.model_validate(data)
        except ValidationError as exc:
            raise StoreError(f"invalid account update: {exc}") from exc
        self._accounts[idx] = updated
        return updated

    def delete_account(self, account_id: str) -> None:
        idx = self._index(account_id)
        del self._accounts[idx]
        logger.info("account deleted id=%s", account_id)

    def move_account(self, account_id: str, target_id: str) -> None:
        """Move an account to the position currently held by `target_id`."""

        if account_id == target_id:
            return
        old_index = self._index(account_id)
        new_index = self._index(target_id)
        moved = self._accounts.pop(old_index)
        self._accounts.insert(new_index, moved)

    def list_accounts(
        self,
        *,
        search: str = "",
        platform: Platform | None = None,
        sort_by: SortBy = SortBy.UPDATED,
    ) -> list[Account]:
        needle = search.strip().lower()

        def matches(acc: Account) -> bool:
            if platform is not None and acc.platform != platform:
                return False
            if not needle:
                return True
            return (
                needle in acc.name.lower()
                or needle in acc.rank.value.lower()
                or needle in acc.rank.label
            )

        selected = [acc for acc in self._accounts if matches(acc)]
        if sort_by == SortBy.RANK:
            selected.sort(key=lambda acc: acc.rank.tier, reverse=True)
        elif sort_by == SortBy.UPDATED:
            selected.sort(key=last_played, reverse=True)
        return selected

    # -- history -----------------------------------------------------------

    def replace_history(self, account_id: str, history: Iterable[MatchRecord]) -> Account:
        """Install a new history and recompute the derived ban fields with it."""

        idx = self._index(account_id)
        current = self._accounts[idx]
        data = current.model_dump()
        data["history"] = [record.model_dump() for record in history]
        try:
            candidate = Account.model_validate(data)
        except ValidationError as exc:
            raise StoreError(f"invalid history for account {account_id!r}: {exc}") from exc

        updated = with_derived_status(candidate, self._clock())
        self._accounts[idx] = updated
        if updated.is_banned != current.is_banned:
            logger.info(
                "ban status changed id=%s is_banned=%s expires_at=%s",
                account_id,
                updated.is_banned,
                updated.ban_expires_at,
            )
        return updated

    def record_result(
        self,
        account_id: str,
        result: MatchResult,
        *,
        hero: str | None = None,
        timestamp: int | None = None,
    ) -> MatchRecord:
        account = self.get(account_id)
        record = MatchRecord(
            id=new_id(),
            result=result,
            timestamp=self._clock() if timestamp is None else timestamp,
            hero=hero,
        )
        self.replace_history(account_id, [*account.history, record])
        logger.info("match recorded account=%s result=%s", account_id, result.value)
        return record

    def edit_match(
        self,
        account_id: str,
        match_id: str,
        *,
        result: MatchResult | None = None,
        timestamp: int | None = None,
        hero: str | None = _UNSET,
    ) -> MatchRecord:
        account = self.get(account_id)
        history = list(account.history)
        for idx, record in enumerate(history):
            if record.id != match_id:
                continue
            changes: dict[str, Any] = {}
            if result is not None:
                changes["result"] = result
            if timestamp is not None:
                changes["timestamp"] = timestamp
            if hero is not _UNSET:
                changes["hero"] = hero
            try:
                edited = MatchRecord.model_validate({**record.model_dump(), **changes})
            except ValidationError as exc:
                raise StoreError(f"invalid match edit: {exc}") from exc
            history[idx] = edited
            self.replace_history(account_id, history)
            return edited
        raise MatchNotFoundError(account_id, match_id)

    def delete_match(self, account_id: str, match_id: str) -> None:
        account = self.get(account_id)
        history = [record for record in account.history if record.id != match_id]
        if len(history) == len(account.history):
            raise MatchNotFoundError(account_id, match_id)
        self.replace_history(account_id, history)

    def refresh_bans(self) -> list[str]:
        """Recompute every account's ban fields at the current clock.

        Returns the ids whose status changed (typically expired cooldowns).
        """

        now = self._clock()
        changed: list[str] = []
        for idx, account in enumerate(self._accounts):
            refreshed = with_derived_status(account, now)
            if (refreshed.is_banned, refreshed.ban_expires_at) != (
                account.is_banned,
                account.ban_expires_at,
            ):
                changed.append(account.id)
            self._accounts[idx] = refreshed
        if changed:
            logger.info("ban status refreshed changed=%s", len(changed))
        return changed

    def risk_index(self, account_id: str) -> RiskAnalysis:
        return compute_risk_index(self.get(account_id).history, cfg=self._risk_cfg)

    # -- import / export ---------------------------------------------------

    def export_accounts(self, path: str | Path) -> int:
        write_json_atomic(path, self._dump())
        logger.info("exported accounts=%s path=%s", len(self._accounts), path)
        return len(self._accounts)

    def import_accounts(self, path: str | Path, *, merge: bool = False) -> int:
        """Overwrite the store with the file's accounts, or append unseen ids.

        Returns the number of accounts taken from the file.
        """

        try:
            payload = read_json(path)
        except (OSError, ValueError) as exc:
            raise StoreError(f"{path}: cannot read accounts: {exc}") from exc

        now = self._clock()
        imported = [with_derived_status(acc, now) for acc in parse_accounts(payload, source=str(path))]

        if not merge:
            self._accounts = imported
            logger.info("imported accounts=%s mode=overwrite", len(imported))
            return len(imported)

        known = {acc.id for acc in self._accounts}
        fresh: list[Account] = []
        for acc in imported:
            if acc.id not in known:
                fresh.append(acc)
                known.add(acc.id)
        self._accounts.extend(fresh)
        logger.info("imported accounts=%s mode=merge skipped=%s", len(fresh), len(imported) - len(fresh))
        return len(fresh)

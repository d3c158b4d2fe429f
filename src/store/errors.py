from __future__ import annotations


class StoreError(Exception):
    """Base exception for account store errors."""

    def __init__(self, detail: str = "Account store error"):
        super().__init__(detail)
        self.detail = detail


class AccountNotFoundError(StoreError):
    def __init__(self, account_id: str):
        super().__init__(f"Account {account_id!r} not found")
        self.account_id = account_id


class MatchNotFoundError(StoreError):
    def __init__(self, account_id: str, match_id: str):
        super().__init__(f"Match {match_id!r} not found in account {account_id!r}")
        self.account_id = account_id
        self.match_id = match_id

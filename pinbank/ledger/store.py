"""
In-memory account store.
Holds accounts by id plus a unique username index that is kept in sync.
"""

from typing import Dict, Iterable, Iterator, List, Optional

from pinbank.ledger.domain import Account
from pinbank.ledger.errors import ConflictError, NotFoundError, ValidationError


class AccountStore:
    """
    Authoritative collection of registered accounts.

    Accounts are immutable, so copy() only duplicates the two dicts.
    The engine always works on a copy and hands the copy back on success.
    """

    def __init__(self):
        self._accounts: Dict[str, Account] = {}
        self._ids_by_username: Dict[str, str] = {}

    @classmethod
    def from_accounts(cls, accounts: Iterable[Account]) -> "AccountStore":
        store = cls()
        for account in accounts:
            store.insert(account)
        return store

    def copy(self) -> "AccountStore":
        clone = AccountStore()
        clone._accounts = dict(self._accounts)
        clone._ids_by_username = dict(self._ids_by_username)
        return clone

    def find_by_id(self, account_id: Optional[str]) -> Optional[Account]:
        if account_id is None:
            return None
        return self._accounts.get(account_id)

    def find_by_username(self, username: str) -> Optional[Account]:
        account_id = self._ids_by_username.get(username)
        if account_id is None:
            return None
        return self._accounts[account_id]

    def insert(self, account: Account) -> None:
        if account.id in self._accounts:
            raise ConflictError(f"Account {account.id} already exists")
        if account.username in self._ids_by_username:
            raise ConflictError("Username already exists")
        self._accounts[account.id] = account
        self._ids_by_username[account.username] = account.id

    def replace(self, account: Account) -> None:
        self._check_replaceable(account)
        self._accounts[account.id] = account

    def replace_many(self, accounts: Iterable[Account]) -> None:
        """Replace several accounts together; nothing changes if any is invalid."""
        accounts = list(accounts)
        seen = set()
        for account in accounts:
            if account.id in seen:
                raise ValidationError(f"Account {account.id} given more than once")
            seen.add(account.id)
            self._check_replaceable(account)
        for account in accounts:
            self._accounts[account.id] = account

    def _check_replaceable(self, account: Account) -> None:
        existing = self._accounts.get(account.id)
        if existing is None:
            raise NotFoundError(f"Account {account.id} not found")
        if existing.username != account.username:
            raise ValidationError("Username cannot be changed")

    def accounts(self) -> List[Account]:
        """All accounts in registration order."""
        return list(self._accounts.values())

    def __iter__(self) -> Iterator[Account]:
        return iter(self.accounts())

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._accounts

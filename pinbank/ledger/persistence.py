"""
Persistence adapters.

The ledger only sees the PersistenceAdapter contract: load/save the whole
account set and the current session id. Storage failures surface as
PersistenceError.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError

from pinbank.ledger.domain import Account, Deposit, Transaction, TransactionKind
from pinbank.ledger.errors import PersistenceError
from pinbank.models import AccountRow, SESSION_ROW_ID, SessionStateRow, TransactionRow

logger = logging.getLogger(__name__)

DEMO_ACCOUNT_ID = "demo1"
DEMO_USERNAME = "demo"
DEMO_BALANCE = Decimal("1000.00")

_transaction_adapter = TypeAdapter(Transaction)


def seed_demo_account(now: datetime) -> Account:
    """The fixed demo account created on first run."""
    opening = Deposit(
        id="init1",
        amount=DEMO_BALANCE,
        description="Initial deposit",
        timestamp=now,
    )
    account = Account(
        id=DEMO_ACCOUNT_ID,
        username=DEMO_USERNAME,
        full_name="Demo User",
        credential="1234",
    )
    return account.with_posting(opening)


class PersistenceAdapter(ABC):
    """Abstract interface for ledger storage backends"""

    @abstractmethod
    def load_all(self) -> List[Account]:
        """Load every persisted account (empty on first run)"""

    @abstractmethod
    def save_all(self, accounts: Iterable[Account]) -> None:
        """Replace persisted state with the given account set"""

    @abstractmethod
    def load_current_session_id(self) -> Optional[str]:
        """Load the id of the logged-in account, if any"""

    @abstractmethod
    def save_current_session_id(self, account_id: Optional[str]) -> None:
        """Persist the id of the logged-in account (None when logged out)"""


class InMemoryPersistence(PersistenceAdapter):
    """Process-local storage, used for tests and embedding."""

    def __init__(self, accounts: Iterable[Account] = (), current_session_id: Optional[str] = None):
        self._accounts = list(accounts)
        self._current_session_id = current_session_id

    def load_all(self) -> List[Account]:
        return list(self._accounts)

    def save_all(self, accounts: Iterable[Account]) -> None:
        self._accounts = list(accounts)

    def load_current_session_id(self) -> Optional[str]:
        return self._current_session_id

    def save_current_session_id(self, account_id: Optional[str]) -> None:
        self._current_session_id = account_id


class SqlAlchemyPersistence(PersistenceAdapter):
    """
    Relational storage through SQLAlchemy.

    save_all() rewrites the accounts and transactions tables inside a single
    database transaction, so a failed save leaves the previous state intact.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def load_all(self) -> List[Account]:
        db = self._session_factory()
        try:
            rows = db.query(AccountRow).order_by(AccountRow.position).all()
            return [_account_from_row(row) for row in rows]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load accounts: {exc}") from exc
        finally:
            db.close()

    def save_all(self, accounts: Iterable[Account]) -> None:
        accounts = list(accounts)
        db = self._session_factory()
        try:
            db.query(TransactionRow).delete(synchronize_session=False)
            db.query(AccountRow).delete(synchronize_session=False)
            for position, account in enumerate(accounts):
                db.add(_account_to_row(account, position))
            db.commit()
            logger.debug("Saved %d accounts", len(accounts))
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"Could not save accounts: {exc}") from exc
        finally:
            db.close()

    def load_current_session_id(self) -> Optional[str]:
        db = self._session_factory()
        try:
            row = db.get(SessionStateRow, SESSION_ROW_ID)
            return row.current_account_id if row else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load session: {exc}") from exc
        finally:
            db.close()

    def save_current_session_id(self, account_id: Optional[str]) -> None:
        db = self._session_factory()
        try:
            db.merge(SessionStateRow(id=SESSION_ROW_ID, current_account_id=account_id))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"Could not save session: {exc}") from exc
        finally:
            db.close()


def _account_to_row(account: Account, position: int) -> AccountRow:
    # Rows are stored oldest first
    history = list(reversed(account.transactions))
    return AccountRow(
        id=account.id,
        position=position,
        username=account.username,
        full_name=account.full_name,
        credential=account.credential,
        balance=account.balance,
        transactions=[
            TransactionRow(
                id=txn.id,
                sequence=sequence,
                kind=txn.kind,
                amount=txn.amount,
                description=txn.description,
                counterparty_id=getattr(txn, "counterparty_id", None),
                timestamp=txn.timestamp,
            )
            for sequence, txn in enumerate(history)
        ],
    )


def _account_from_row(row: AccountRow) -> Account:
    try:
        transactions = tuple(
            _transaction_from_row(txn_row) for txn_row in reversed(row.transactions)
        )
        return Account(
            id=row.id,
            username=row.username,
            full_name=row.full_name,
            credential=row.credential,
            balance=Decimal(row.balance),
            transactions=transactions,
        )
    except ValueError as exc:
        raise PersistenceError(f"Stored account {row.id} is unreadable: {exc}") from exc


def _transaction_from_row(row: TransactionRow) -> Transaction:
    data = {
        "id": row.id,
        "kind": TransactionKind(row.kind).value,
        "amount": Decimal(row.amount),
        "description": row.description,
        "timestamp": row.timestamp,
    }
    if row.counterparty_id is not None:
        data["counterparty_id"] = row.counterparty_id
    return _transaction_adapter.validate_python(data)

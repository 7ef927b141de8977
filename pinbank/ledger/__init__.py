"""
Account ledger: data model, store, operations and persistence.
"""

from pinbank.ledger.domain import (
    Account,
    Deposit,
    Session,
    Transaction,
    TransactionKind,
    TransferIn,
    TransferOut,
    Withdrawal,
)
from pinbank.ledger.errors import (
    AuthenticationError,
    ConflictError,
    InsufficientFundsError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    SelfTransferError,
    ValidationError,
)
from pinbank.ledger.persistence import InMemoryPersistence, PersistenceAdapter, SqlAlchemyPersistence
from pinbank.ledger.service import Ledger, MonotonicClock
from pinbank.ledger.store import AccountStore

__all__ = [
    "Account",
    "AccountStore",
    "AuthenticationError",
    "ConflictError",
    "Deposit",
    "InMemoryPersistence",
    "InsufficientFundsError",
    "Ledger",
    "LedgerError",
    "MonotonicClock",
    "NotFoundError",
    "PersistenceAdapter",
    "PersistenceError",
    "SelfTransferError",
    "Session",
    "SqlAlchemyPersistence",
    "Transaction",
    "TransactionKind",
    "TransferIn",
    "TransferOut",
    "ValidationError",
    "Withdrawal",
]

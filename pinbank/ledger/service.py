"""
Ledger service.

Owns the authoritative AccountStore and Session, serializes operations with
a single lock, and commits every successful operation through the
persistence adapter before the new state becomes visible.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Tuple

from pinbank.ledger import engine
from pinbank.ledger.domain import Account, Session, Transaction, TransferIn, TransferOut, utc_now
from pinbank.ledger.errors import LedgerError, PersistenceError, ValidationError, ConflictError
from pinbank.ledger.persistence import PersistenceAdapter, seed_demo_account
from pinbank.ledger.store import AccountStore

logger = logging.getLogger(__name__)


class MonotonicClock:
    """UTC clock that never goes backwards, even if the system clock does."""

    def __init__(self, source: Callable[[], datetime] = utc_now):
        self._source = source
        self._last: Optional[datetime] = None

    def advance_to(self, instant: datetime) -> None:
        if self._last is None or instant > self._last:
            self._last = instant

    def now(self) -> datetime:
        current = self._source()
        if self._last is not None and current < self._last:
            current = self._last
        self._last = current
        return current


class Ledger:
    """
    Application state for the bank: accounts, the current session and the
    persistence adapter they are saved through.

    Every public method runs under one lock. A mutating call computes a new
    store with the engine, saves it, and only then swaps it in. If saving
    fails, the previous store and session stay in place and PersistenceError
    is raised.
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        store: Optional[AccountStore] = None,
        session: Optional[Session] = None,
        *,
        clock: Optional[MonotonicClock] = None,
        starting_bonus: Decimal = engine.STARTING_BONUS,
        min_credential_length: int = engine.MIN_CREDENTIAL_LENGTH,
    ):
        self._persistence = persistence
        self._store = store if store is not None else AccountStore()
        self._session = session if session is not None else Session()
        self._clock = clock or MonotonicClock()
        self._starting_bonus = starting_bonus
        self._min_credential_length = min_credential_length
        self._lock = threading.RLock()

    @classmethod
    def load(
        cls,
        persistence: PersistenceAdapter,
        *,
        seed_demo: bool = True,
        clock: Optional[MonotonicClock] = None,
        **options,
    ) -> "Ledger":
        """
        Build a ledger from persisted state.

        Seeds the demo account when storage is empty and seed_demo is set.
        A stored session pointing at an unknown account is discarded.
        """
        clock = clock or MonotonicClock()
        accounts = persistence.load_all()
        if not accounts and seed_demo:
            accounts = [seed_demo_account(clock.now())]
            persistence.save_all(accounts)
            logger.info("Seeded demo account", extra={"action": "seed", "user_id": accounts[0].id})

        try:
            store = AccountStore.from_accounts(accounts)
            engine.check_store(store)
        except (ConflictError, ValidationError) as exc:
            raise PersistenceError(f"Stored ledger is inconsistent: {exc.message}") from exc

        for account in store:
            if account.transactions:
                clock.advance_to(max(txn.timestamp for txn in account.transactions))

        session_id = persistence.load_current_session_id()
        if session_id is not None and session_id not in store:
            logger.warning("Discarding session for unknown account %s", session_id)
            session_id = None

        logger.info("Loaded %d accounts", len(store))
        return cls(persistence, store, Session(current_account_id=session_id), clock=clock, **options)

    # ==================== READS ====================

    @property
    def session(self) -> Session:
        with self._lock:
            return self._session

    def snapshot(self) -> AccountStore:
        """A private copy of the store, consistent as of this call."""
        with self._lock:
            return self._store.copy()

    def get_account(self, account_id: Optional[str]) -> Optional[Account]:
        with self._lock:
            return self._store.find_by_id(account_id)

    def current_account(self) -> Optional[Account]:
        with self._lock:
            return self._store.find_by_id(self._session.current_account_id)

    # ==================== OPERATIONS ====================

    def register(self, username: str, full_name: str, credential: str, confirm_credential: str) -> Account:
        with self._operation("register", username):
            result = engine.register(
                self._store,
                username,
                full_name,
                credential,
                confirm_credential,
                now=self._clock.now(),
                starting_bonus=self._starting_bonus,
                min_credential_length=self._min_credential_length,
            )
            self._commit(result.store, result.session)
        logger.info("Registered account", extra={"action": "register", "user_id": result.account.id})
        return result.account

    def authenticate(self, username: str, credential: str) -> Account:
        with self._operation("login", username):
            result = engine.authenticate(self._store, username, credential)
            self._commit_session(result.session)
        logger.info("Logged in", extra={"action": "login", "user_id": result.account.id})
        return result.account

    def logout(self) -> Session:
        """
        Clear the current session. Safe to call when nobody is logged in.

        The in-memory session is cleared even if persisting that fails.
        """
        with self._lock:
            previous = self._session
            with self._operation("logout", previous.current_account_id):
                session = engine.logout()
                self._session = session
                if previous != session:
                    self._persistence.save_current_session_id(session.current_account_id)
        return session

    def deposit(self, account_id: Optional[str], amount, description: Optional[str] = None) -> Transaction:
        with self._operation("deposit", account_id):
            result = engine.deposit(self._store, account_id, amount, description, now=self._clock.now())
            self._commit(result.store)
        logger.info("Deposited %s", result.transaction.amount, extra={"action": "deposit", "user_id": account_id})
        return result.transaction

    def withdraw(self, account_id: Optional[str], amount, description: Optional[str] = None) -> Transaction:
        with self._operation("withdraw", account_id):
            result = engine.withdraw(self._store, account_id, amount, description, now=self._clock.now())
            self._commit(result.store)
        logger.info("Withdrew %s", result.transaction.amount, extra={"action": "withdraw", "user_id": account_id})
        return result.transaction

    def transfer(
        self,
        sender_id: Optional[str],
        recipient_username: str,
        amount,
        description: Optional[str] = None,
    ) -> Tuple[TransferOut, TransferIn]:
        with self._operation("transfer", sender_id):
            result = engine.transfer(
                self._store, sender_id, recipient_username, amount, description, now=self._clock.now()
            )
            self._commit(result.store)
        logger.info(
            "Transferred %s to %s",
            result.sent.amount,
            result.recipient.id,
            extra={"action": "transfer", "user_id": sender_id},
        )
        return result.sent, result.received

    # ==================== COMMIT ====================

    @contextmanager
    def _operation(self, action: str, user_id: Optional[str]):
        with self._lock:
            try:
                yield
            except PersistenceError:
                logger.error("%s could not be saved", action, extra={"action": action, "user_id": user_id}, exc_info=True)
                raise
            except LedgerError as exc:
                logger.info("%s rejected: %s", action, exc.message, extra={"action": action, "user_id": user_id})
                raise

    def _commit(self, store: AccountStore, session: Optional[Session] = None) -> None:
        self._persistence.save_all(store.accounts())
        if session is not None and session != self._session:
            try:
                self._persistence.save_current_session_id(session.current_account_id)
            except PersistenceError:
                self._restore_persisted_accounts()
                raise
        self._store = store
        if session is not None:
            self._session = session

    def _commit_session(self, session: Session) -> None:
        if session != self._session:
            self._persistence.save_current_session_id(session.current_account_id)
        self._session = session

    def _restore_persisted_accounts(self) -> None:
        try:
            self._persistence.save_all(self._store.accounts())
        except PersistenceError:
            logger.exception("Could not restore persisted accounts after a failed session save")

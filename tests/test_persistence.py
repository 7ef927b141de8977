"""
Persistence and ledger service tests.
Covers the SQLAlchemy adapter, seeding, session restore and rollback on
storage failures.
"""

import logging
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pinbank.database import Base, init_db
from pinbank.ledger import (
    InMemoryPersistence,
    Ledger,
    MonotonicClock,
    PersistenceError,
    SqlAlchemyPersistence,
)
from pinbank.ledger.domain import MAX_AMOUNT, Account, Deposit, TransferIn
from pinbank.ledger.errors import InsufficientFundsError
from pinbank.models import AccountRow, TransactionRow

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create fresh tables for each test."""
    init_db(engine)
    yield
    Base.metadata.drop_all(bind=engine)


class FlakyPersistence(InMemoryPersistence):
    """In-memory storage whose writes can be switched off."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_accounts = False
        self.fail_session = False

    def save_all(self, accounts):
        if self.fail_accounts:
            raise PersistenceError("disk full")
        super().save_all(accounts)

    def save_current_session_id(self, account_id):
        if self.fail_session:
            raise PersistenceError("disk full")
        super().save_current_session_id(account_id)


# ==================== SQLALCHEMY ADAPTER TESTS ====================

def test_sqlalchemy_round_trip():
    """Test that accounts, transactions and session survive a reload."""
    persistence = SqlAlchemyPersistence(TestingSessionLocal)
    ledger = Ledger.load(persistence, seed_demo=False)

    bob = ledger.register("bob", "Bob B", "5678", "5678")
    alice = ledger.register("alice", "Alice A", "1234", "1234")
    ledger.deposit(alice.id, "50.25")
    ledger.withdraw(alice.id, 10)
    ledger.transfer(alice.id, "bob", "40.25", "Rent share")

    reloaded = Ledger.load(SqlAlchemyPersistence(TestingSessionLocal), seed_demo=False)

    assert reloaded.snapshot().accounts() == ledger.snapshot().accounts()
    assert reloaded.session.current_account_id == alice.id

    restored_bob = reloaded.get_account(bob.id)
    assert restored_bob.balance == Decimal("140.25")
    received = restored_bob.transactions[0]
    assert isinstance(received, TransferIn)
    assert received.counterparty_id == alice.id
    assert received.description == "Transfer from alice: Rent share"
    assert received.timestamp.tzinfo is not None


def test_sqlalchemy_round_trip_at_balance_limit():
    """Test that the largest allowed balance reloads exactly."""
    ledger = Ledger.load(SqlAlchemyPersistence(TestingSessionLocal), seed_demo=False)
    alice = ledger.register("alice", "Alice A", "1234", "1234")
    ledger.deposit(alice.id, MAX_AMOUNT - 100)

    reloaded = Ledger.load(SqlAlchemyPersistence(TestingSessionLocal), seed_demo=False)

    restored = reloaded.get_account(alice.id)
    assert restored.balance == MAX_AMOUNT
    assert restored.transactions[0].amount == Decimal("9999999999899.99")
    assert restored == ledger.get_account(alice.id)


def test_sqlalchemy_empty_database():
    """Test a first run with nothing stored."""
    persistence = SqlAlchemyPersistence(TestingSessionLocal)
    assert persistence.load_all() == []
    assert persistence.load_current_session_id() is None


def test_sqlalchemy_save_all_replaces_state():
    """Test that save_all drops accounts missing from the new set."""
    persistence = SqlAlchemyPersistence(TestingSessionLocal)
    ledger = Ledger.load(persistence, seed_demo=True)
    ledger.register("alice", "Alice A", "1234", "1234")
    assert len(persistence.load_all()) == 2

    persistence.save_all([])
    assert persistence.load_all() == []


def test_sqlalchemy_reads_rows_without_description():
    """Test that older rows with a null description get the default."""
    db = TestingSessionLocal()
    db.add(AccountRow(
        id="legacy",
        position=0,
        username="old",
        full_name="Old Timer",
        credential="1234",
        balance=Decimal("25.00"),
        transactions=[TransactionRow(
            id="t1",
            sequence=0,
            kind="deposit",
            amount=Decimal("25.00"),
            description=None,
            timestamp=datetime(2024, 5, 1, 9, 30),
        )],
    ))
    db.commit()
    db.close()

    [account] = SqlAlchemyPersistence(TestingSessionLocal).load_all()
    deposit = account.transactions[0]
    assert isinstance(deposit, Deposit)
    assert deposit.description == "Deposit"
    assert deposit.timestamp == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def test_sqlalchemy_unreadable_rows():
    """Test that an unknown transaction kind is reported as a persistence error."""
    db = TestingSessionLocal()
    db.add(AccountRow(
        id="bad",
        position=0,
        username="bad",
        full_name="Bad",
        credential="1234",
        balance=Decimal("5.00"),
        transactions=[TransactionRow(
            id="t1", sequence=0, kind="refund", amount=Decimal("5.00"),
            timestamp=datetime(2024, 5, 1),
        )],
    ))
    db.commit()
    db.close()

    with pytest.raises(PersistenceError):
        SqlAlchemyPersistence(TestingSessionLocal).load_all()


def test_sqlalchemy_failure_is_persistence_error():
    """Test that database errors surface as PersistenceError."""
    Base.metadata.drop_all(bind=engine)
    persistence = SqlAlchemyPersistence(TestingSessionLocal)

    with pytest.raises(PersistenceError):
        persistence.load_all()
    with pytest.raises(PersistenceError):
        persistence.save_current_session_id("x")


# ==================== LOAD / SEED TESTS ====================

def test_load_seeds_demo_account():
    """Test that an empty store is seeded with the reproducible demo account."""
    persistence = InMemoryPersistence()
    ledger = Ledger.load(persistence)

    demo = ledger.snapshot().find_by_username("demo")
    assert demo.id == "demo1"
    assert demo.full_name == "Demo User"
    assert demo.balance == Decimal("1000")
    assert [txn.id for txn in demo.transactions] == ["init1"]
    assert demo.transactions[0].description == "Initial deposit"
    assert persistence.load_all() == [demo]
    assert ledger.authenticate("demo", "1234") == demo


def test_load_without_seeding():
    """Test that seeding can be switched off."""
    ledger = Ledger.load(InMemoryPersistence(), seed_demo=False)
    assert len(ledger.snapshot()) == 0


def test_load_does_not_reseed():
    """Test that existing accounts suppress the demo seed."""
    persistence = InMemoryPersistence()
    Ledger.load(persistence, seed_demo=False).register("alice", "Alice A", "1234", "1234")

    ledger = Ledger.load(persistence)
    assert ledger.snapshot().find_by_username("demo") is None


def test_load_discards_stale_session():
    """Test that a session id for an unknown account is dropped."""
    ledger = Ledger.load(InMemoryPersistence(current_session_id="ghost"))
    assert ledger.session.current_account_id is None
    assert ledger.current_account() is None


def test_load_rejects_inconsistent_ledger():
    """Test that stored balances must match their history."""
    broken = Account(id="x", username="x", full_name="X", credential="1234", balance=Decimal("10"))
    with pytest.raises(PersistenceError):
        Ledger.load(InMemoryPersistence([broken]))


def test_clock_never_goes_backwards():
    """Test that timestamps stay ordered when the system clock jumps back."""
    readings = iter([
        datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
        datetime(2026, 1, 1, 11, 0, tzinfo=timezone.utc),
    ])
    clock = MonotonicClock(source=lambda: next(readings))
    ledger = Ledger(InMemoryPersistence(), clock=clock)

    alice = ledger.register("alice", "Alice A", "1234", "1234")
    txn = ledger.deposit(alice.id, 5)

    assert txn.timestamp == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


# ==================== SERVICE / SESSION TESTS ====================

def test_register_logs_in_and_persists():
    """Test that registering saves the account and the session."""
    persistence = InMemoryPersistence()
    ledger = Ledger(persistence)

    alice = ledger.register("alice", "Alice A", "1234", "1234")

    assert ledger.session.current_account_id == alice.id
    assert ledger.current_account() == alice
    assert persistence.load_all() == [alice]
    assert persistence.load_current_session_id() == alice.id


def test_login_logout_cycle():
    """Test that login sets and logout clears the persisted session."""
    persistence = InMemoryPersistence()
    ledger = Ledger(persistence)
    alice = ledger.register("alice", "Alice A", "1234", "1234")

    ledger.logout()
    assert persistence.load_current_session_id() is None

    ledger.authenticate("alice", "1234")
    assert persistence.load_current_session_id() == alice.id

    ledger.logout()
    ledger.logout()
    assert ledger.session.current_account_id is None
    assert persistence.load_current_session_id() is None


def test_operations_use_configured_bonus():
    """Test that the starting bonus and PIN length are configurable."""
    ledger = Ledger(InMemoryPersistence(), starting_bonus=Decimal("0"), min_credential_length=6)

    account = ledger.register("alice", "Alice A", "123456", "123456")
    assert account.balance == Decimal("0")
    assert account.transactions == ()


# ==================== ROLLBACK TESTS ====================

def test_failed_save_rolls_back_deposit():
    """Test that a deposit that cannot be saved is not applied."""
    persistence = FlakyPersistence()
    ledger = Ledger(persistence)
    alice = ledger.register("alice", "Alice A", "1234", "1234")

    persistence.fail_accounts = True
    with pytest.raises(PersistenceError):
        ledger.deposit(alice.id, 50)

    assert ledger.get_account(alice.id).balance == Decimal("100")
    assert persistence.load_all()[0].balance == Decimal("100")

    persistence.fail_accounts = False
    ledger.deposit(alice.id, 50)
    assert ledger.get_account(alice.id).balance == Decimal("150")


def test_failed_save_rolls_back_transfer():
    """Test that neither side of an unsaved transfer is applied."""
    persistence = FlakyPersistence()
    ledger = Ledger(persistence)
    bob = ledger.register("bob", "Bob B", "1234", "1234")
    alice = ledger.register("alice", "Alice A", "1234", "1234")

    persistence.fail_accounts = True
    with pytest.raises(PersistenceError):
        ledger.transfer(alice.id, "bob", 60)

    assert ledger.get_account(alice.id).balance == Decimal("100")
    assert ledger.get_account(bob.id).balance == Decimal("100")
    assert len(ledger.get_account(bob.id).transactions) == 1


def test_failed_session_save_rolls_back_registration():
    """Test that a registration whose session cannot be saved is undone."""
    persistence = FlakyPersistence()
    ledger = Ledger(persistence)

    persistence.fail_session = True
    with pytest.raises(PersistenceError):
        ledger.register("alice", "Alice A", "1234", "1234")

    assert len(ledger.snapshot()) == 0
    assert ledger.session.current_account_id is None
    assert persistence.load_all() == []


def test_failed_session_save_keeps_previous_login():
    """Test that a login that cannot be saved leaves the old session."""
    persistence = FlakyPersistence()
    ledger = Ledger(persistence)
    alice = ledger.register("alice", "Alice A", "1234", "1234")
    ledger.register("bob", "Bob B", "1234", "1234")

    persistence.fail_session = True
    with pytest.raises(PersistenceError):
        ledger.authenticate("alice", "1234")

    assert ledger.session.current_account_id != alice.id


def test_logout_clears_session_even_if_save_fails():
    """Test that logout always ends the in-memory session."""
    persistence = FlakyPersistence()
    ledger = Ledger(persistence)
    ledger.register("alice", "Alice A", "1234", "1234")

    persistence.fail_session = True
    with pytest.raises(PersistenceError):
        ledger.logout()

    assert ledger.session.current_account_id is None


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_failed_logout_is_logged_against_logged_in_account():
    """Test that a logout save failure names the account that was logged in."""
    persistence = FlakyPersistence()
    ledger = Ledger(persistence)
    alice = ledger.register("alice", "Alice A", "1234", "1234")

    handler = RecordingHandler()
    service_logger = logging.getLogger("pinbank.ledger.service")
    service_logger.addHandler(handler)
    try:
        persistence.fail_session = True
        with pytest.raises(PersistenceError):
            ledger.logout()
    finally:
        service_logger.removeHandler(handler)

    [record] = [r for r in handler.records if r.levelno == logging.ERROR]
    assert record.action == "logout"
    assert record.user_id == alice.id


def test_rejected_operation_does_not_save():
    """Test that a failed operation writes nothing."""
    persistence = FlakyPersistence()
    ledger = Ledger(persistence)
    alice = ledger.register("alice", "Alice A", "1234", "1234")

    persistence.fail_accounts = True
    with pytest.raises(InsufficientFundsError):
        ledger.withdraw(alice.id, 500)

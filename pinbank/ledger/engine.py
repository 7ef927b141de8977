"""
Ledger operations.

Each function takes an AccountStore and returns a result tuple carrying a
new store. The store passed in is never modified, so a caller that fails to
commit the result simply keeps using its old store.

Balances only move through Account.with_posting(), which adds the signed
transaction amount and prepends the record in one step. That keeps
balance == sum(signed amounts) true after every operation.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, NamedTuple, Optional

from pinbank.ledger.domain import (
    Account,
    Deposit,
    Session,
    Transaction,
    TransferIn,
    TransferOut,
    Withdrawal,
    coerce_amount,
)
from pinbank.ledger.errors import (
    AuthenticationError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    SelfTransferError,
    ValidationError,
)
from pinbank.ledger.store import AccountStore

STARTING_BONUS = Decimal("100.00")
MIN_CREDENTIAL_LENGTH = 4
WELCOME_BONUS_DESCRIPTION = "Welcome bonus"


class Registration(NamedTuple):
    store: AccountStore
    account: Account
    session: Session


class Authentication(NamedTuple):
    account: Account
    session: Session


class Posting(NamedTuple):
    store: AccountStore
    account: Account
    transaction: Transaction


class TransferPosting(NamedTuple):
    store: AccountStore
    sender: Account
    recipient: Account
    sent: TransferOut
    received: TransferIn


def _new_id() -> str:
    return str(uuid.uuid4())


def _require_account(store: AccountStore, account_id: Optional[str]) -> Account:
    account = store.find_by_id(account_id)
    if account is None:
        if account_id is None:
            raise NotFoundError("No account is logged in")
        raise NotFoundError(f"Account {account_id} not found")
    return account


def _require_funds(account: Account, amount: Decimal) -> None:
    if amount > account.balance:
        raise InsufficientFundsError(
            f"Insufficient funds. Balance: {account.balance}, Required: {amount}"
        )


def register(
    store: AccountStore,
    username: str,
    full_name: str,
    credential: str,
    confirm_credential: str,
    *,
    now: datetime,
    starting_bonus: Decimal = STARTING_BONUS,
    min_credential_length: int = MIN_CREDENTIAL_LENGTH,
) -> Registration:
    """
    Create an account funded with the welcome bonus and log it in.

    Raises ValidationError for empty fields, mismatched or short PINs and
    ConflictError when the username is taken.
    """
    if not username or not full_name or not credential:
        raise ValidationError("All fields are required")
    if credential != confirm_credential:
        raise ValidationError("PINs do not match")
    if len(credential) < min_credential_length:
        raise ValidationError(f"PIN must be at least {min_credential_length} digits")
    if store.find_by_username(username) is not None:
        raise ConflictError("Username already exists")

    account = Account(
        id=_new_id(),
        username=username,
        full_name=full_name,
        credential=credential,
    )
    if starting_bonus > 0:
        bonus = Deposit(
            id=_new_id(),
            amount=starting_bonus,
            description=WELCOME_BONUS_DESCRIPTION,
            timestamp=now,
        )
        account = account.with_posting(bonus)

    updated = store.copy()
    updated.insert(account)
    return Registration(updated, account, Session(current_account_id=account.id))


def authenticate(store: AccountStore, username: str, credential: str) -> Authentication:
    """
    Check a username/PIN pair by plain equality.

    Unknown usernames and wrong PINs raise the same AuthenticationError.
    """
    account = store.find_by_username(username)
    if account is None or account.credential != credential:
        raise AuthenticationError("Invalid username or PIN")
    return Authentication(account, Session(current_account_id=account.id))


def logout() -> Session:
    return Session()


def deposit(
    store: AccountStore,
    account_id: Optional[str],
    amount: Any,
    description: Optional[str] = None,
    *,
    now: datetime,
) -> Posting:
    amount = coerce_amount(amount)
    account = _require_account(store, account_id)

    transaction = Deposit(
        id=_new_id(),
        amount=amount,
        description=description or Deposit.default_description,
        timestamp=now,
    )
    account = account.with_posting(transaction)

    updated = store.copy()
    updated.replace(account)
    return Posting(updated, account, transaction)


def withdraw(
    store: AccountStore,
    account_id: Optional[str],
    amount: Any,
    description: Optional[str] = None,
    *,
    now: datetime,
) -> Posting:
    amount = coerce_amount(amount)
    account = _require_account(store, account_id)
    _require_funds(account, amount)

    transaction = Withdrawal(
        id=_new_id(),
        amount=amount,
        description=description or Withdrawal.default_description,
        timestamp=now,
    )
    account = account.with_posting(transaction)

    updated = store.copy()
    updated.replace(account)
    return Posting(updated, account, transaction)


def transfer(
    store: AccountStore,
    sender_id: Optional[str],
    recipient_username: str,
    amount: Any,
    description: Optional[str] = None,
    *,
    now: datetime,
) -> TransferPosting:
    """
    Move money from the sender to the account named recipient_username.

    Both sides are posted on the same copy of the store and committed with
    replace_many(), so there is no state where only one side has moved.
    """
    amount = coerce_amount(amount)
    sender = _require_account(store, sender_id)
    _require_funds(sender, amount)
    if recipient_username == sender.username:
        raise SelfTransferError("You cannot transfer money to yourself")
    recipient = store.find_by_username(recipient_username)
    if recipient is None:
        raise NotFoundError("Recipient not found")

    sent_description = f"Transfer to {recipient.username}"
    received_description = f"Transfer from {sender.username}"
    if description:
        sent_description = f"{sent_description}: {description}"
        received_description = f"{received_description}: {description}"

    sent = TransferOut(
        id=_new_id(),
        amount=amount,
        description=sent_description,
        counterparty_id=recipient.id,
        timestamp=now,
    )
    received = TransferIn(
        id=_new_id(),
        amount=amount,
        description=received_description,
        counterparty_id=sender.id,
        timestamp=now,
    )
    sender = sender.with_posting(sent)
    recipient = recipient.with_posting(received)

    updated = store.copy()
    updated.replace_many([sender, recipient])
    return TransferPosting(updated, sender, recipient, sent, received)


def balance_matches_history(account: Account) -> bool:
    return account.balance == account.ledger_total()


def check_store(store: AccountStore) -> None:
    """Raise ValidationError if any account breaks a ledger invariant."""
    for account in store:
        if account.balance < 0:
            raise ValidationError(f"Account {account.id} has a negative balance")
        if not balance_matches_history(account):
            raise ValidationError(
                f"Account {account.id} balance {account.balance} does not match "
                f"its transactions ({account.ledger_total()})"
            )

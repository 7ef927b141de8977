"""
Account API endpoints.
Read-only views of the logged-in account: details, balance and history.
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from pinbank.api.deps import current_account_id, get_ledger
from pinbank.core.config import settings
from pinbank.ledger import Account, Ledger, NotFoundError
from pinbank.schemas.account import AccountResponse, AccountBalance
from pinbank.schemas.transaction import TransactionResponse

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def _require_account(ledger: Ledger, account_id: Optional[str]) -> Account:
    account = ledger.get_account(account_id)
    if account is None:
        raise NotFoundError("No account is logged in")
    return account


@router.get("/me", response_model=AccountResponse)
def get_my_account(
    account_id: Optional[str] = Depends(current_account_id),
    ledger: Ledger = Depends(get_ledger)
):
    """
    Get the logged-in account.
    """
    return _require_account(ledger, account_id)


@router.get("/me/balance", response_model=AccountBalance)
def get_my_balance(
    account_id: Optional[str] = Depends(current_account_id),
    ledger: Ledger = Depends(get_ledger)
):
    """
    Get the logged-in account's balance.
    """
    account = _require_account(ledger, account_id)
    return AccountBalance(account_id=account.id, balance=account.balance)


@router.get("/me/transactions", response_model=List[TransactionResponse])
def get_my_transactions(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.HISTORY_PAGE_SIZE, ge=1, le=100),
    account_id: Optional[str] = Depends(current_account_id),
    ledger: Ledger = Depends(get_ledger)
):
    """
    Get the logged-in account's transactions, newest first.

    - **skip**: Number of records to skip (default: 0)
    - **limit**: Maximum number of records to return (default: 10)
    """
    account = _require_account(ledger, account_id)
    return list(account.transactions[skip:skip + limit])

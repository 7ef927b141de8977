"""
Transaction API endpoints.
Deposits, withdrawals and transfers for the logged-in account.
"""

from fastapi import APIRouter, Depends, status
from typing import Optional

from pinbank.api.deps import current_account_id, get_ledger
from pinbank.ledger import Ledger
from pinbank.schemas.transaction import (
    AmountRequest,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("/deposit", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def deposit(
    data: AmountRequest,
    account_id: Optional[str] = Depends(current_account_id),
    ledger: Ledger = Depends(get_ledger)
):
    """
    Deposit money into the logged-in account.

    - **amount**: Must be positive
    - **description**: Optional, defaults to "Deposit"
    """
    return ledger.deposit(account_id, data.amount, data.description)


@router.post("/withdraw", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def withdraw(
    data: AmountRequest,
    account_id: Optional[str] = Depends(current_account_id),
    ledger: Ledger = Depends(get_ledger)
):
    """
    Withdraw money from the logged-in account.

    - **amount**: Must be positive and not exceed the balance
    - **description**: Optional, defaults to "Withdrawal"
    """
    return ledger.withdraw(account_id, data.amount, data.description)


@router.post("/transfer", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
def transfer(
    data: TransferRequest,
    account_id: Optional[str] = Depends(current_account_id),
    ledger: Ledger = Depends(get_ledger)
):
    """
    Send money to another user.

    Implements:
    - Atomicity: both accounts are updated together or not at all
    - Concurrency: the ledger lock serializes all operations

    - **recipient_username**: Username of the recipient
    - **amount**: Must be positive and not exceed the balance
    - **description**: Optional transfer description
    """
    sent, received = ledger.transfer(account_id, data.recipient_username, data.amount, data.description)
    return TransferResponse(
        sent=TransactionResponse.model_validate(sent),
        received=TransactionResponse.model_validate(received),
    )

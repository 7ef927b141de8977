"""
Pydantic schemas package.
"""

from pinbank.schemas.account import (
    RegisterRequest,
    LoginRequest,
    AccountResponse,
    AccountBalance,
    SessionResponse,
)
from pinbank.schemas.transaction import (
    AmountRequest,
    TransferRequest,
    TransactionResponse,
    TransferResponse,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "AccountResponse",
    "AccountBalance",
    "SessionResponse",
    "AmountRequest",
    "TransferRequest",
    "TransactionResponse",
    "TransferResponse",
]

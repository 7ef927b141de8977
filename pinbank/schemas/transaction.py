"""
Pydantic schemas for ledger operation requests and transaction responses.
"""

from pydantic import BaseModel, Field, ConfigDict
from decimal import Decimal
from datetime import datetime
from typing import Optional


class AmountRequest(BaseModel):
    """Schema for a deposit or withdrawal."""
    amount: Decimal = Field(..., description="Amount, positive with at most two decimal places")
    description: Optional[str] = Field(None, max_length=500, description="Optional description")

    model_config = ConfigDict(
        json_schema_extra={"example": {"amount": 50.00}}
    )


class TransferRequest(BaseModel):
    """Schema for sending money to another user."""
    recipient_username: str = Field(..., max_length=50, description="Username of the recipient")
    amount: Decimal = Field(..., description="Amount, positive with at most two decimal places")
    description: Optional[str] = Field(None, max_length=500, description="Optional transfer description")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "recipient_username": "bob",
                "amount": 25.00,
                "description": "Lunch"
            }
        }
    )


class TransactionResponse(BaseModel):
    """Schema for transaction response."""
    id: str
    kind: str
    amount: Decimal
    description: str
    counterparty_id: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class TransferResponse(BaseModel):
    """Both records produced by one transfer."""
    sent: TransactionResponse
    received: TransactionResponse

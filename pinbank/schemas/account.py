"""
Pydantic schemas for account and session API requests and responses.
"""

from pydantic import BaseModel, Field, ConfigDict
from decimal import Decimal
from typing import Optional


class RegisterRequest(BaseModel):
    """Schema for registering a new account."""
    username: str = Field(..., max_length=50, description="Unique, case-sensitive username")
    full_name: str = Field(..., max_length=100, description="Display name")
    pin: str = Field(..., max_length=100, description="PIN, at least 4 characters")
    confirm_pin: str = Field(..., max_length=100, description="Must match pin")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "alice",
                "full_name": "Alice Anders",
                "pin": "1234",
                "confirm_pin": "1234"
            }
        }
    )


class LoginRequest(BaseModel):
    """Schema for logging in."""
    username: str
    pin: str

    model_config = ConfigDict(
        json_schema_extra={"example": {"username": "demo", "pin": "1234"}}
    )


class AccountResponse(BaseModel):
    """Schema for account response. The PIN is never included."""
    id: str
    username: str
    full_name: str
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class AccountBalance(BaseModel):
    """Schema for account balance response."""
    account_id: str
    balance: Decimal


class SessionResponse(BaseModel):
    """Schema for the current session."""
    authenticated: bool
    account_id: Optional[str] = None

"""
Ledger data model.
Accounts, the four transaction variants and the session value.
All models are immutable; operations build new instances instead of mutating.
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, ClassVar, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pinbank.ledger.errors import ValidationError

CENT = Decimal("0.01")
# Largest value a Numeric(15, 2) column holds
MAX_AMOUNT = Decimal("9999999999999.99")


class TransactionKind(str, enum.Enum):
    """Transaction kinds, as stored and serialized."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER_OUT = "transfer-out"
    TRANSFER_IN = "transfer-in"


def coerce_amount(value: Any) -> Decimal:
    """
    Convert a caller-supplied amount to a positive cent-precision Decimal.

    Raises ValidationError for non-numeric, non-finite, non-positive values,
    amounts above MAX_AMOUNT and amounts with more than two fractional digits.
    """
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError("Amount must be a number")
    else:
        raise ValidationError("Amount must be a number")

    if not amount.is_finite():
        raise ValidationError("Amount must be a finite number")
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"Amount cannot exceed {MAX_AMOUNT}")
    quantized = amount.quantize(CENT)
    if quantized != amount:
        raise ValidationError("Amount cannot have more than two decimal places")
    return quantized


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _TransactionBase(BaseModel):
    """Fields shared by every transaction variant."""
    model_config = ConfigDict(frozen=True)

    sign: ClassVar[int] = 1
    default_description: ClassVar[str] = ""

    id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT)
    description: str
    timestamp: datetime

    @model_validator(mode="before")
    @classmethod
    def _fill_description(cls, data: Any) -> Any:
        # Older records may lack a description
        if isinstance(data, dict) and not data.get("description"):
            data = dict(data, description=cls.default_description)
        return data

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign this transaction applies to the balance."""
        return self.amount * self.sign


class Deposit(_TransactionBase):
    kind: Literal["deposit"] = "deposit"
    default_description: ClassVar[str] = "Deposit"


class Withdrawal(_TransactionBase):
    kind: Literal["withdrawal"] = "withdrawal"
    sign: ClassVar[int] = -1
    default_description: ClassVar[str] = "Withdrawal"


class TransferOut(_TransactionBase):
    """Sender side of a transfer. counterparty_id is the recipient."""
    kind: Literal["transfer-out"] = "transfer-out"
    sign: ClassVar[int] = -1
    default_description: ClassVar[str] = "Transfer sent"

    counterparty_id: str = Field(..., min_length=1)


class TransferIn(_TransactionBase):
    """Recipient side of a transfer. counterparty_id is the sender."""
    kind: Literal["transfer-in"] = "transfer-in"
    default_description: ClassVar[str] = "Transfer received"

    counterparty_id: str = Field(..., min_length=1)


Transaction = Annotated[
    Union[Deposit, Withdrawal, TransferOut, TransferIn],
    Field(discriminator="kind"),
]


class Account(BaseModel):
    """
    A registered user and their ledger.

    transactions is ordered newest first. balance always equals the signed
    sum of transactions; with_posting() is the only way the engine moves it.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    full_name: str
    credential: str = Field(..., repr=False)
    balance: Decimal = Field(default=Decimal("0.00"), ge=0, le=MAX_AMOUNT)
    transactions: Tuple[Transaction, ...] = ()

    def ledger_total(self) -> Decimal:
        return sum((txn.signed_amount for txn in self.transactions), Decimal("0.00"))

    def with_posting(self, transaction: Transaction) -> "Account":
        """Return a copy with transaction prepended and balance adjusted."""
        balance = self.balance + transaction.signed_amount
        if balance > MAX_AMOUNT:
            raise ValidationError(f"Balance cannot exceed {MAX_AMOUNT}")
        return self.model_copy(
            update={
                "balance": balance,
                "transactions": (transaction,) + self.transactions,
            }
        )

    def __repr__(self):
        return f"<Account(id={self.id}, username={self.username}, balance={self.balance})>"


class Session(BaseModel):
    """Which account is currently logged in, if any."""
    model_config = ConfigDict(frozen=True)

    current_account_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_account_id is not None

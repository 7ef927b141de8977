"""
Account database model.
Persisted form of a ledger account.
"""

from sqlalchemy import Column, String, Numeric, Integer
from sqlalchemy.orm import relationship
from pinbank.database import Base


class AccountRow(Base):
    """
    Account table - stores registered users and their balances.
    """
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)
    # Registration order
    position = Column(Integer, nullable=False, default=0)
    username = Column(String(50), unique=True, index=True, nullable=False)
    full_name = Column(String(100), nullable=False)
    credential = Column(String(100), nullable=False)
    balance = Column(Numeric(precision=15, scale=2), nullable=False, default=0)

    # Ordered oldest first; the ledger keeps them newest first
    transactions = relationship(
        "TransactionRow",
        back_populates="account",
        order_by="TransactionRow.sequence",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<AccountRow(id={self.id}, username={self.username}, balance={self.balance})>"

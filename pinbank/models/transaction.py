"""
Transaction database model.
One row per ledger record; a transfer is stored as two rows, one per account.
"""

from sqlalchemy import Column, String, Numeric, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship
from pinbank.database import Base


class TransactionRow(Base):
    """
    Transaction table - stores deposits, withdrawals and both sides of transfers.
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), index=True, nullable=False)
    # Position in the account's history, 0 being the oldest record
    sequence = Column(Integer, nullable=False)
    kind = Column(String(20), nullable=False)
    amount = Column(Numeric(precision=15, scale=2), nullable=False)
    description = Column(String(600), nullable=True)
    # Weak reference to the other side of a transfer; deliberately no foreign key
    counterparty_id = Column(String(36), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    account = relationship("AccountRow", back_populates="transactions")

    def __repr__(self):
        return f"<TransactionRow(id={self.id}, kind={self.kind}, account={self.account_id}, amount={self.amount})>"

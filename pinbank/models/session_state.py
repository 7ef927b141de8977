"""
Session state database model.
A single row holding the currently logged-in account id.
"""

from sqlalchemy import Column, Integer, String
from pinbank.database import Base

SESSION_ROW_ID = 1


class SessionStateRow(Base):
    __tablename__ = "session_state"

    id = Column(Integer, primary_key=True, default=SESSION_ROW_ID)
    current_account_id = Column(String(36), nullable=True)

    def __repr__(self):
        return f"<SessionStateRow(current_account_id={self.current_account_id})>"

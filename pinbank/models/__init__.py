"""
Database models package.
"""

from pinbank.models.account import AccountRow
from pinbank.models.transaction import TransactionRow
from pinbank.models.session_state import SessionStateRow, SESSION_ROW_ID

__all__ = ["AccountRow", "TransactionRow", "SessionStateRow", "SESSION_ROW_ID"]

"""
Shared API dependencies.
"""

import threading

from fastapi import Depends

from pinbank.core.config import settings
from pinbank.database import SessionLocal, init_db
from pinbank.ledger import Ledger, SqlAlchemyPersistence

_ledger = None
_ledger_lock = threading.Lock()


def get_ledger() -> Ledger:
    """
    Dependency returning the process-wide ledger.
    Created on first use from the configured database.
    """
    global _ledger
    with _ledger_lock:
        if _ledger is None:
            init_db()
            _ledger = Ledger.load(
                SqlAlchemyPersistence(SessionLocal),
                seed_demo=settings.SEED_DEMO_ACCOUNT,
                starting_bonus=settings.STARTING_BONUS,
                min_credential_length=settings.MIN_PIN_LENGTH,
            )
    return _ledger


def current_account_id(ledger: Ledger = Depends(get_ledger)):
    """Id of the account logged in to the shared process-wide session, or None."""
    return ledger.session.current_account_id

"""
Ledger error taxonomy.
Every ledger operation either returns a result or raises one of these.
"""


class LedgerError(Exception):
    """Base class for all classified ledger failures."""
    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Raised for malformed input or non-positive amounts."""
    code = "validation_error"


class ConflictError(LedgerError):
    """Raised when a username or account id is already taken."""
    code = "conflict"


class AuthenticationError(LedgerError):
    """Raised when a username/PIN pair does not match any account."""
    code = "authentication_failed"


class NotFoundError(LedgerError):
    """Raised when an account id or username cannot be resolved."""
    code = "not_found"


class InsufficientFundsError(LedgerError):
    """Raised when a withdrawal or transfer would drop balance below zero."""
    code = "insufficient_funds"


class SelfTransferError(LedgerError):
    """Raised when an account tries to transfer money to itself."""
    code = "self_transfer"


class PersistenceError(LedgerError):
    """Raised when the persistence adapter fails to load or save state."""
    code = "persistence_error"

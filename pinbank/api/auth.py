"""
Authentication API endpoints.
Handles registration, login, logout and the current session.
"""

from fastapi import APIRouter, Depends, status

from pinbank.api.deps import get_ledger
from pinbank.ledger import Ledger
from pinbank.schemas.account import AccountResponse, LoginRequest, RegisterRequest, SessionResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    ledger: Ledger = Depends(get_ledger)
):
    """
    Register a new account and log it in.

    - **username**: Unique, case-sensitive
    - **full_name**: Display name
    - **pin** / **confirm_pin**: Must match, at least 4 characters

    New accounts start with a welcome bonus.
    """
    return ledger.register(data.username, data.full_name, data.pin, data.confirm_pin)


@router.post("/login", response_model=AccountResponse)
def login(
    data: LoginRequest,
    ledger: Ledger = Depends(get_ledger)
):
    """
    Log in with username and PIN.

    The API keeps one process-wide session shared by every client, so this
    replaces whoever was logged in before.
    """
    return ledger.authenticate(data.username, data.pin)


@router.post("/logout", response_model=SessionResponse)
def logout(ledger: Ledger = Depends(get_ledger)):
    """
    Log out. Calling it while logged out is not an error.
    """
    session = ledger.logout()
    return SessionResponse(authenticated=session.is_authenticated, account_id=session.current_account_id)


@router.get("/session", response_model=SessionResponse)
def get_session(ledger: Ledger = Depends(get_ledger)):
    """
    Get the current session.
    """
    session = ledger.session
    return SessionResponse(authenticated=session.is_authenticated, account_id=session.current_account_id)

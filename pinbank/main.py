"""
Main FastAPI application entry point.
Sets up the API, middleware, error mapping and routes.
"""

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pinbank.api import accounts, auth, transactions
from pinbank.core.config import settings
from pinbank.core.logging_config import setup_logging
from pinbank.database import get_db
from pinbank.ledger.errors import (
    AuthenticationError,
    ConflictError,
    InsufficientFundsError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    SelfTransferError,
    ValidationError,
)

setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InsufficientFundsError: status.HTTP_400_BAD_REQUEST,
    SelfTransferError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc"  # ReDoc UI
)

# CORS middleware (allows frontend to call API)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    """Render a classified ledger failure as JSON."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.code},
    )


@app.get("/")
def root():
    """
    Root endpoint - service info.
    """
    return {
        "message": "PinBank API",
        "version": settings.VERSION,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "auth": f"{settings.API_V1_PREFIX}/auth",
            "accounts": f"{settings.API_V1_PREFIX}/accounts",
            "transactions": f"{settings.API_V1_PREFIX}/transactions"
        }
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for monitoring.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unreachable"},
        )
    return {
        "status": "healthy",
        "database": "connected"
    }


# Include API routers
app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
app.include_router(accounts.router, prefix=settings.API_V1_PREFIX)
app.include_router(transactions.router, prefix=settings.API_V1_PREFIX)

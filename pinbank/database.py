"""
Database connection and session management.
Uses SQLAlchemy for ORM and connection pooling.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from pinbank.core.config import settings


def _engine_options(url: str) -> dict:
    options = {"echo": settings.SQL_ECHO, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Sessions are opened from FastAPI's worker threads
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = 10
        options["max_overflow"] = 20
    return options


# Create database engine
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for models
Base = declarative_base()


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    # Register the models on Base.metadata
    import pinbank.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    Dependency function to get database session.
    Yields session and ensures it's closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

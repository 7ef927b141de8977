"""
Configuration settings for the API.
Loads environment variables and provides application settings.
"""

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # Database
    DATABASE_URL: str = "sqlite:///./pinbank.db"
    SQL_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Ledger
    STARTING_BONUS: Decimal = Decimal("100.00")
    MIN_PIN_LENGTH: int = 4
    SEED_DEMO_ACCOUNT: bool = True
    HISTORY_PAGE_SIZE: int = 10

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "PinBank"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Personal banking demo: PIN login, deposits, withdrawals and transfers"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()

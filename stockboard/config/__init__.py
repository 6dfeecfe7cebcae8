"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # ======================
    # Static config (YAML)
    # ======================
    CONFIG_DIR: Optional[str] = None

    # ======================
    # Market Data
    # ======================
    MARKET_DATA_PROVIDER: Optional[str] = None
    QUOTE_TIMEOUT_SECONDS: Optional[float] = None

    # ======================
    # Refresh loops
    # ======================
    SCHEDULER_ENABLED: bool = True
    MARKET_REFRESH_SECONDS: Optional[int] = None
    PORTFOLIO_REFRESH_SECONDS: Optional[int] = None
    POPULAR_REFRESH_SECONDS: Optional[int] = None
    TIMEZONE: str = "America/New_York"

    # ======================
    # Holdings storage
    # ======================
    STORAGE_PATH: str = "data/local_storage.json"
    HOLDINGS_STORAGE_KEY: str = "portfolio-holdings"

    # ======================
    # Logging
    # ======================
    LOG_FILE: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()

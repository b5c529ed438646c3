# salesdesk/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal

class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False

    # Security
    SECRET_KEY: str
    ALGORITHM: Literal["HS256"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Database
    DATABASE_URL: str

    # Frontend origins allowed by CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    # Rate limiting (turned off in tests)
    RATE_LIMIT_ENABLED: bool = True

    # Password hashing cost
    BCRYPT_ROUNDS: int = 12

    # Inventory
    LOW_STOCK_THRESHOLD: int = 10

    # Sale transaction retry on transient storage errors
    SALE_RETRY_ATTEMPTS: int = 3
    SALE_RETRY_BACKOFF: float = 0.1

    # Admin bootstrap
    INTERNAL_ADMIN_SECRET: str | None = None



    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()

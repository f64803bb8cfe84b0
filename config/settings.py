"""
config/settings.py
Application settings loaded from environment variables.
Uses Pydantic BaseSettings for validation and type safety.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-only-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    APP_NAME: str = "ComplianceConnect"
    APP_ENV: str = "development"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Server ───────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    WORKERS: int = 4

    # ── Storage ──────────────────────────────────────────────
    STORAGE_BACKEND: Literal["memory", "database"] = "memory"
    DATABASE_URL: Optional[str] = None
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40
    DATABASE_POOL_TIMEOUT: int = 30
    SEED_DATA: bool = True              # Load fixture users/professionals on startup

    # ── Auth ─────────────────────────────────────────────────
    JWT_SECRET_KEY: str = DEV_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12
    SEED_PASSWORD: str = "password123"  # Shared by every fixture account

    # ── Frontend ─────────────────────────────────────────────
    ALLOWED_ORIGINS: str = "http://localhost:5000,http://localhost:5173"

    # ── Monitoring ───────────────────────────────────────────
    METRICS_ENABLED: bool = True

    @model_validator(mode="after")
    def check_backend_requirements(self) -> "Settings":
        if self.STORAGE_BACKEND == "database" and not self.DATABASE_URL:
            raise ValueError(
                "DATABASE_URL must be set when STORAGE_BACKEND=database. "
                "Did you forget to provision a database?"
            )
        if self.is_production and self.JWT_SECRET_KEY == DEV_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY must be overridden in production")
        return self

    @property
    def allowed_origins_list(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance; call this everywhere."""
    return Settings()


settings = get_settings()

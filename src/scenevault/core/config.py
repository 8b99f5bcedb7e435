from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "SceneVault"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True  # Set to False in production

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Storage
    data_dir: Path = Path("data")
    backup_retention: int = 20  # Max backups kept per project, oldest evicted first

    # Shutdown
    shutdown_grace_period: int = 30

    # Auth
    session_ttl_seconds: int = 7 * 24 * 60 * 60
    session_cookie_name: str = "session"
    cookie_secure: bool = False  # Set to True behind HTTPS
    password_min_length: int = 6
    password_min_score: int = 0  # zxcvbn score 0-4; 0 disables the strength check
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 1

    # Rate limiting (login/register)
    login_rate_limit: str = "5/minute"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    @field_validator("backup_retention")
    @classmethod
    def validate_backup_retention(cls, v: int) -> int:
        if v < 1:
            raise ValueError("BACKUP_RETENTION must be at least 1")
        return v

    @field_validator("password_min_score")
    @classmethod
    def validate_password_min_score(cls, v: int) -> int:
        """zxcvbn scores run from 0 to 4."""
        if not 0 <= v <= 4:
            raise ValueError("PASSWORD_MIN_SCORE must be between 0 and 4")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()

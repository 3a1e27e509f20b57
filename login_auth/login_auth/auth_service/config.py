"""
Configuration management for the auth service
"""
from datetime import timedelta
from typing import List

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TokenConfig(BaseModel):
    """Immutable token signing configuration, built once at startup."""

    model_config = ConfigDict(frozen=True)

    signing_secret: SecretStr
    token_lifetime: timedelta
    algorithm: str = "HS256"
    leeway: timedelta = timedelta(0)

    @field_validator("signing_secret")
    @classmethod
    def secret_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("signing secret must not be empty")
        return value

    @field_validator("token_lifetime")
    @classmethod
    def lifetime_positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("token lifetime must be positive")
        return value


class HashingConfig(BaseModel):
    """Immutable password hashing configuration."""

    model_config = ConfigDict(frozen=True)

    # First scheme hashes new passwords; the rest only verify.
    schemes: List[str] = Field(default_factory=lambda: ["pbkdf2_sha256"], min_length=1)
    rounds: int = Field(default=29000, gt=0)
    max_concurrent: int = Field(default=4, gt=0)
    acquire_timeout: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    """Auth service configuration loaded from environment variables"""

    # Token Configuration
    AUTH_SIGNING_SECRET: SecretStr = SecretStr("change-this-secret-in-prod-0123456789abcdef")
    TOKEN_LIFETIME_SECONDS: int = 12 * 60 * 60
    JWT_ALGORITHM: str = "HS256"
    JWT_LEEWAY_SECONDS: int = 0

    # Password Hashing Configuration
    PASSWORD_HASH_SCHEMES: List[str] = ["pbkdf2_sha256"]
    PASSWORD_HASH_ROUNDS: int = 29000
    MAX_CONCURRENT_HASHES: int = 4
    HASH_ACQUIRE_TIMEOUT_SECONDS: float = 10.0

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./app.db"

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "/app/logs"

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def token_config(self) -> TokenConfig:
        return TokenConfig(
            signing_secret=self.AUTH_SIGNING_SECRET,
            token_lifetime=timedelta(seconds=self.TOKEN_LIFETIME_SECONDS),
            algorithm=self.JWT_ALGORITHM,
            leeway=timedelta(seconds=self.JWT_LEEWAY_SECONDS),
        )

    def hashing_config(self) -> HashingConfig:
        return HashingConfig(
            schemes=self.PASSWORD_HASH_SCHEMES,
            rounds=self.PASSWORD_HASH_ROUNDS,
            max_concurrent=self.MAX_CONCURRENT_HASHES,
            acquire_timeout=self.HASH_ACQUIRE_TIMEOUT_SECONDS,
        )


# Global settings instance
settings = Settings()

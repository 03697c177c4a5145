"""Application settings loaded from environment variables and .env."""
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class Settings(BaseSettings):
    """
    Runtime configuration.

    GEMINI_API_KEY, DATABASE_URL and JWT_SECRET have no defaults: a missing
    value fails startup instead of serving a half-configured API.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Generation API
    GEMINI_API_KEY: str
    GENERATION_API_URL: str = GEMINI_OPENAI_BASE_URL
    GENERATION_MODEL: str = "gemini-2.0-flash"
    GENERATION_TIMEOUT: float = 30.0

    # Storage
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # Tokens
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24 * 7

    # HTTP
    ENVIRONMENT: str = "production"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    @field_validator("GEMINI_API_KEY")
    @classmethod
    def check_api_key(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("AIza"):
            raise ValueError("GEMINI_API_KEY is missing or malformed")
        return value

    @field_validator("JWT_SECRET")
    @classmethod
    def check_jwt_secret(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return value

    @property
    def debug(self) -> bool:
        """Development mode: upstream error details are returned to clients."""
        return self.ENVIRONMENT.strip().lower() == "development"


settings = Settings()

"""
Application configuration.

Values come from the environment (a local .env file is loaded first).
"""
import os
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime settings for the LabelLens backend"""
    environment: str = "development"
    database_url: str = "sqlite:///./labellens.db"

    # Auth
    jwt_secret: str = "labellens-dev-secret"
    jwt_algorithm: str = "HS256"
    access_token_ttl: timedelta = timedelta(days=10)
    verification_token_ttl: timedelta = timedelta(minutes=10)
    otp_ttl: timedelta = timedelta(minutes=10)

    # Generative text / OCR backend
    openai_api_key: Optional[str] = None
    ai_model: str = "gpt-4o-mini"
    ocr_model: str = "gpt-4o"

    # Open Food Facts
    off_user_agent: str = "LabelLens/1.0 (Educational Project)"
    product_timeout: float = 10.0
    image_timeout: float = 3.0

    placeholder_image_url: str = "https://placehold.co/400x400?text=No+Image"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def ai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        defaults = cls()
        return cls(
            environment=os.getenv("APP_ENV", defaults.environment),
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            jwt_secret=os.getenv("JWT_SECRET", defaults.jwt_secret),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            ai_model=os.getenv("OPENAI_MODEL", defaults.ai_model),
            ocr_model=os.getenv("OPENAI_OCR_MODEL", defaults.ocr_model),
            off_user_agent=os.getenv("OFF_USER_AGENT", defaults.off_user_agent),
            placeholder_image_url=os.getenv("PLACEHOLDER_IMAGE_URL", defaults.placeholder_image_url),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def get_openai_api_key() -> str:
    """
    Return the configured OpenAI API key.

    Raises:
        RuntimeError: If OPENAI_API_KEY is not set
    """
    key = get_settings().openai_api_key
    if not key:
        raise RuntimeError("OPENAI_API_KEY is not configured")
    return key

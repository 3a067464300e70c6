from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from functools import lru_cache


# Known weak secrets that must never be used outside development
WEAK_SECRET_KEYS = {
    "secret",
    "changeme",
    "password",
    "development-secret-key-change-in-production",
    "your-secret-key",
    "supersecret",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/quotedesk"

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    # Auth
    SECRET_KEY: str = "development-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # CORS / links
    FRONTEND_URL: str = "http://localhost:5173"
    PUBLIC_BASE_URL: str = "http://localhost:5173"

    # Email (Brevo)
    BREVO_API_KEY: str | None = None
    EMAIL_FROM_ADDRESS: str = "no-reply@quotedesk.app"
    EMAIL_FROM_NAME: str = "QuoteDesk"

    # Error tracking
    SENTRY_DSN: str | None = None

    # Local storage for generated documents
    UPLOAD_DIR: str = "uploads"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    DOCS_ENABLED: bool | None = None
    SQL_ECHO: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

    @model_validator(mode="after")
    def check_production_secret(self) -> "Settings":
        """Refuse to boot production with a guessable signing key. DEBUG is forced off."""
        if self.ENVIRONMENT == "production":
            self.DEBUG = False
            if self.SECRET_KEY.lower() in WEAK_SECRET_KEYS:
                raise ValueError("SECRET_KEY is a known weak value")
            if len(self.SECRET_KEY) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def sqlalchemy_echo(self) -> bool:
        """SQL echo is opt-in and never enabled in production."""
        return self.SQL_ECHO and not self.is_production

    @property
    def docs_enabled(self) -> bool:
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()

"""
Environment configuration for the campus exit pass service.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @staticmethod
    def get_secret_key_default() -> str:
        """Generate a default secret key if not provided"""
        import secrets
        import string
        alphabet = string.ascii_letters + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(32))

    # Application configuration
    APP_NAME: str = "Campus Exit Pass Service"
    API_VERSION: str = "v1"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: List[str] = Field(default=["*"])

    # Database configuration
    DATABASE_URL: str = "sqlite:///./campus_exit.db"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Security configuration
    JWT_SECRET_KEY: str = Field(default_factory=lambda: Settings.get_secret_key_default())
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Exit pass workflow
    PASS_CREDENTIAL_PREFIX: str = "CEMS"
    HALL_SCOPED_REVIEW: bool = False
    RECENT_GATE_ACTIVITY_LIMIT: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_SQL_QUERIES: bool = False
    ENABLE_STRUCTURED_LOGGING: bool = True

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from string to list"""
        if isinstance(v, str):
            # Handle JSON string format from .env
            if v.startswith('[') and v.endswith(']'):
                try:
                    import json
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v

    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite"""
        return self.DATABASE_URL.startswith("sqlite")

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()

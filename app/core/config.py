from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Union
from pydantic import field_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Hiring Lifecycle API"
    ENVIRONMENT: str = "development"

    # Database Settings (Postgres in production, SQLite file for local runs)
    DATABASE_URL: str = "sqlite:///./data/hiring.db"

    # JWT Settings
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 5

    # Logging
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # Lifecycle behaviour
    # False restores the permissive "any status to any status" behaviour
    STRICT_STATUS_TRANSITIONS: bool = True

    # Scoring oracle (any OpenAI-compatible endpoint, e.g. Groq)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.4
    OPENAI_TIMEOUT_SECONDS: float = 60.0
    RESUME_DIR: str = "./data/resumes"

    # Scheduling oracle (Google Calendar)
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/api/v1/calendar/callback"
    DEFAULT_INTERVIEW_DURATION_MINUTES: int = 60
    FRONTEND_URL: str = "http://localhost:5173"  # OAuth callback redirects here

    # Fernet key for OAuth tokens at rest
    ENCRYPTION_KEY: str = ""

    # Redis Settings (for Celery task queue)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Notification e-mail delivery
    NOTIFICATION_EMAILS_ENABLED: bool = False
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_SES_FROM_EMAIL: str = "noreply@example.com"
    AWS_SES_FROM_NAME: str = "Hiring Team"

    # CORS Settings - can be set as JSON string in .env
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:5173"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[List[str], str]) -> List[str]:
        """Parse CORS origins from JSON string or list"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not valid JSON, split by comma
                return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {sorted(allowed)}")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build the settings object once per process."""
    return Settings()


settings = get_settings()

import os
from typing import Annotated, List, Optional
from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

# Load environment variables from the correct .env file
env_file = ".env.production" if os.getenv("APP_ENV") == "production" else ".env"
load_dotenv(env_file)

class Settings(BaseSettings):
    APP_ENV: str = "development"
    DEBUG: bool = True
    FRONTEND_URL: str = "http://localhost:3000"
    DATABASE_URL: str
    ALEMBIC_DATABASE_URL: Optional[str] = None
    DB_TIMEOUT_SECONDS: float = 10.0
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["*"]  # comma separated in the environment
    LOG_LEVEL: str = "info"

    # Session settings
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    SESSION_EXPIRATION_MINUTES: int = 60 * 24
    SESSION_COOKIE_NAME: str = "session"
    AUTH_SYNC_SECRET: Optional[str] = None  # sync-user is refused until this is set

    # Object storage (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    STORAGE_TIMEOUT_SECONDS: float = 30.0

    # LLM (Gemini)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-pro"
    LLM_TIMEOUT_SECONDS: float = 45.0

    # Cache / rate limiting (Upstash Redis REST)
    UPSTASH_REDIS_REST_URL: str = ""
    UPSTASH_REDIS_REST_TOKEN: str = ""
    STATS_CACHE_TTL_SECONDS: int = 60
    SUGGESTION_RATE_LIMIT: int = 10
    SUGGESTION_RATE_WINDOW_SECONDS: int = 60

    # Email settings (invitations are skipped when SMTP_HOST is empty)
    EMAIL_SENDER: str = "no-reply@localhost"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""

    @field_validator("ALLOWED_ORIGINS", mode="before")
    def split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

settings = Settings()

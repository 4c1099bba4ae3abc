# portal/config.py
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    APP_NAME: str = "Growth Portal API"
    APP_VERSION: str = "1.0.0"

    # Database
    DATABASE_URL: str = "sqlite:///./portal.db"

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4-turbo-preview"
    OPENAI_FAST_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT_SECONDS: float = 120.0
    OPENAI_MAX_RETRIES: int = 0

    # JWT
    JWT_SECRET: str = "dev-secret-key"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60

    # Roles
    ADMIN_ROLE: str = "admin"
    ADMIN_EMAIL: str = "admin@example.com"

    # Notifications
    N8N_WEBHOOK_URL: Optional[str] = None
    EMAIL_WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT_SECONDS: float = 10.0
    WEBHOOK_MAX_ATTEMPTS: int = 3
    WEBHOOK_RETRY_BACKOFF_SECONDS: float = 2.0

    # Portal
    DASHBOARD_URL: str = "http://localhost:3000/dashboard"
    CHAT_HISTORY_LIMIT: int = 10

    # CORS - as string, will be parsed to list
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list:
        return [x.strip() for x in self.CORS_ORIGINS.split(',')]

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()

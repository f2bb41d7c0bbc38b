"""Application configuration via environment variables."""
from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings
from sqlalchemy.engine import make_url

LOCAL_HOSTS = ("localhost", "127.0.0.1")


class Settings(BaseSettings):
    """App settings loaded from .env or environment.

    Either set DATABASE_URL (any async SQLAlchemy URL, e.g. a Neon connection
    string rewritten to ``postgresql+asyncpg://``) or the individual DB_* parts.
    """

    DATABASE_URL: str = ""
    DB_HOST: str = ""
    DB_PORT: int = 5432
    DB_USER: str = ""
    DB_PASSWORD: str = ""
    DB_NAME: str = ""
    DB_SSL: Optional[bool] = None  # None = on for non-local hosts

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: float = 10.0  # seconds to wait for a pooled connection

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000"

    class Config:
        env_file = ".env"

    def has_database_config(self) -> bool:
        if self.DATABASE_URL.strip():
            return True
        return bool(self.DB_HOST.strip() and self.DB_USER.strip() and self.DB_NAME.strip())

    def database_url(self) -> str:
        """Resolve the async SQLAlchemy URL, preferring DATABASE_URL."""
        if self.DATABASE_URL.strip():
            return self.DATABASE_URL.strip()
        password = quote_plus(self.DB_PASSWORD) if self.DB_PASSWORD else ""
        auth = f"{self.DB_USER}:{password}" if password else self.DB_USER
        return f"postgresql+asyncpg://{auth}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def use_ssl(self) -> bool:
        if self.DB_SSL is not None:
            return self.DB_SSL
        if self.DATABASE_URL.strip():
            url = make_url(self.DATABASE_URL.strip())
            return url.get_backend_name() == "postgresql" and url.host not in LOCAL_HOSTS
        return bool(self.DB_HOST) and self.DB_HOST not in LOCAL_HOSTS


settings = Settings()

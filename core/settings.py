from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, PostgresDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=True)


class PgDbSettings(CustomSettings):
    POSTGRES_ENGINE: str = Field(default="postgresql+asyncpg")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: SecretStr = Field(default="postgres")
    POSTGRES_DB: str = Field(default="dbchat")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    DATABASE_URL: PostgresDsn | str = Field(default="")
    # Create tables on startup instead of running Alembic (local/dev only)
    AUTO_CREATE_SCHEMA: bool = Field(default=False)
    # Applied to every pooled PostgreSQL connection
    POSTGRES_LOCK_TIMEOUT: str = Field(default="4s")
    POSTGRES_STATEMENT_TIMEOUT: str = Field(default="8s")

    @model_validator(mode="before")
    def validate_postgres_dsn(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            _built_uri = PostgresDsn.build(
                scheme=data.get("POSTGRES_ENGINE", "postgresql+asyncpg"),
                username=data.get("POSTGRES_USER", "postgres"),
                password=data.get("POSTGRES_PASSWORD", "postgres"),
                host=data.get("POSTGRES_HOST", "localhost"),
                port=int(data.get("POSTGRES_PORT", 5432)),
                path=data.get("POSTGRES_DB", "dbchat"),
            ).unicode_string()
            data["DATABASE_URL"] = _built_uri
        return data


class ChatSettings(CustomSettings):
    """Messaging and long-polling behaviour.

    Set via env vars:
    - POLL_TIMEOUT: ceiling of one long-poll wait, in seconds
    - POLL_CHECK_INTERVAL: delay between store checks, in milliseconds
    - MESSAGE_MAX_LENGTH: maximum message body length, in characters
    - MESSAGE_PAGINATION_LIMIT: default history page size
    - MESSAGE_PAGINATION_MAX: largest history page a caller may request
    """

    POLL_TIMEOUT: float = Field(default=25, gt=0)
    POLL_CHECK_INTERVAL: int = Field(default=500, gt=0)
    MESSAGE_MAX_LENGTH: int = Field(default=5000, ge=1)
    MESSAGE_PAGINATION_LIMIT: int = Field(default=50, ge=1)
    MESSAGE_PAGINATION_MAX: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def validate_pagination(self):
        if self.MESSAGE_PAGINATION_LIMIT > self.MESSAGE_PAGINATION_MAX:
            raise ValueError(
                "MESSAGE_PAGINATION_LIMIT cannot exceed MESSAGE_PAGINATION_MAX"
            )
        return self


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: PgDbSettings = Field(default_factory=PgDbSettings)
    CHAT: ChatSettings = Field(default_factory=ChatSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()

import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",
    )

    environment: Literal["development", "test", "production"] = Field(
        "development", alias="COGNITIVE_ENV"
    )
    host: str = Field("0.0.0.0", alias="COGNITIVE_HOST")
    port: int = Field(4000, alias="COGNITIVE_PORT")
    client_url: str = Field("http://localhost:3000", alias="COGNITIVE_CLIENT_URL")
    log_level: str = Field("INFO", alias="COGNITIVE_LOG_LEVEL")
    gzip_minimum_size: int = Field(1024, alias="COGNITIVE_GZIP_MINIMUM_SIZE")
    gemini_api_key: Optional[str] = Field(None, alias="GEMINI_API_KEY")
    gemini_model: Optional[str] = Field(None, alias="GEMINI_MODEL")

    # Empty keeps the store in process memory only.
    database_url: Optional[str] = Field(
        "sqlite:///./cognitive_mirrors.db", alias="COGNITIVE_DATABASE_URL"
    )
    database_pool_size: int = Field(10, alias="COGNITIVE_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="COGNITIVE_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="COGNITIVE_DATABASE_ECHO")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.client_url.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc

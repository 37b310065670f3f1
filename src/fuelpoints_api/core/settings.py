from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    service_name: str = "fuelpoints-api"
    database_url: str = "sqlite+aiosqlite:///./fuelpoints.db"
    database_echo: bool = False
    log_level: str = "INFO"

    # HTTP surface
    api_prefix: str = "/api"
    cors_allow_origins: str = "http://localhost:3000"
    default_page_size: int = 20
    max_page_size: int = 100

    # Auth security
    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 720

    # Observability
    tracing_enabled: bool = False

    @field_validator("default_page_size", "max_page_size")
    @classmethod
    def positive_page_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Page sizes must be positive")
        return value

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]

    @property
    def expose_error_details(self) -> bool:
        return self.environment != "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

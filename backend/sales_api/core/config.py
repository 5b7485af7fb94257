from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field("sqlite+aiosqlite:///./sales.db", alias="DATABASE_URL")

    basic_auth_username: str = Field(..., alias="BASIC_AUTH_USERNAME")
    basic_auth_password: str = Field(..., alias="BASIC_AUTH_PASSWORD")

    cors_origins: str | None = Field(None, alias="CORS_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # --- Sales list paging ---
    sales_default_page_size: int = Field(10, alias="SALES_DEFAULT_PAGE_SIZE", ge=1)
    sales_max_page_size: int = Field(100, alias="SALES_MAX_PAGE_SIZE", ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: object) -> object:
        if v is None:
            return "INFO"
        if isinstance(v, str):
            level = v.strip().upper()
            return level or "INFO"
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _normalize_cors_origins(cls, v: object) -> object:
        if isinstance(v, str):
            origins = v.strip()
            return origins or None
        return v

    @model_validator(mode="after")
    def _clamp_default_page_size(self) -> "Settings":
        if self.sales_default_page_size > self.sales_max_page_size:
            self.sales_default_page_size = self.sales_max_page_size
        return self

    @property
    def cors_origin_list(self) -> list[str]:
        if not self.cors_origins:
            return []
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Package settings from environment variables (ADDRSPEC_*)."""

    model_config = SettingsConfigDict(
        env_prefix="ADDRSPEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Diagnosis catalog (empty = packaged catalog.yml)
    catalog_path: str = Field(default="")

    # DNS lookups are not implemented; the engine always reports "not checked"
    check_dns: bool = Field(default=False)

    # Most severe category SyntaxValidator.should_allow still accepts
    accept_category: str = Field(default="RFC5322")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

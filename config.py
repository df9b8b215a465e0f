from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PKG_DIR = Path(__file__).resolve().parent
ENV_PATH = PKG_DIR / ".env"


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    # Ticketmaster Discovery API
    ticketmaster_api_key: str | None = Field(
        default=None, validation_alias="TICKETMASTER_API_KEY"
    )
    ticketmaster_base_url: str = Field(
        "https://app.ticketmaster.com", validation_alias="TICKETMASTER_BASE_URL"
    )
    default_country_code: str = Field(
        "GB", validation_alias="DEFAULT_COUNTRY_CODE"
    )

    # HTTP client
    http_timeout_seconds: float = Field(
        8.0, validation_alias="HTTP_TIMEOUT_SECONDS"
    )
    http_max_retries: int = Field(
        3, validation_alias="HTTP_MAX_RETRIES"
    )
    upstream_cache_seconds: int = Field(
        300, validation_alias="UPSTREAM_CACHE_SECONDS"
    )

    # AI
    openai_api_key: str | None = Field(
        default=None, validation_alias="OPENAI_API_KEY"
    )
    ai_model: str = Field("gpt-4o-mini", validation_alias="AI_MODEL")

    # CORS, comma-separated
    cors_origins: str = Field("*", validation_alias="CORS_ORIGINS")

    # Storage
    database_path: str = Field(
        str(PKG_DIR / "wattado.db"), validation_alias="DATABASE_PATH"
    )

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()

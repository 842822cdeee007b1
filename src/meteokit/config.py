# meteokit/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUEST_TIMEOUT: float = 60.0
"""Fixed per-request timeout in seconds. Not configurable."""


class MeteokitSettings(BaseSettings):
    """
    Manages user-configurable settings for clients built on meteokit,
    loaded from environment variables (prefixed with 'METEOKIT_') or a
    .env/secrets.env file.

    Only the backend location, the user agent and the log level are
    configurable; the request timeout is the fixed `REQUEST_TIMEOUT`.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),
        env_file_encoding="utf-8",
        env_prefix="METEOKIT_",
        extra="ignore",
        case_sensitive=False,
    )

    base_url: str | None = Field(
        default=None,
        description="Absolute base URL that relative endpoints are appended to",
    )
    user_agent: str = Field(
        default="meteokit/0.1.0",
        description="User-Agent header for requests",
    )
    log_level: str = Field(
        default="INFO", description="Minimum level of the configured log sink"
    )


@lru_cache
def get_settings() -> MeteokitSettings:
    """
    Provides access to the meteokit settings.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached for performance.

    Returns:
        MeteokitSettings: The settings instance.
    """
    return MeteokitSettings()

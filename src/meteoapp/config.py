# meteoapp/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from meteokit.backend import BackendConfiguration
from meteokit.config import MeteokitSettings

from .constants import (
    DEFAULT_USER_AGENT,
    OPENWEATHER_BASE_URL,
    OPENWEATHER_ICON_BASE_URL,
    OPENWEATHER_SAMPLE_API_KEY,
)


class OpenWeatherSettings(MeteokitSettings):
    """
    OpenWeather-specific settings for the meteoapp package.

    Inherits the generic meteokit settings and adds the OpenWeather API key and
    icon location. Settings are loaded from environment variables (prefixed
    with 'METEOAPP_') or .env/secrets.env files.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),
        env_file_encoding="utf-8",
        env_prefix="METEOAPP_",
        extra="ignore",
        case_sensitive=False,
    )

    base_url: str | None = Field(
        default=OPENWEATHER_BASE_URL,
        description="OpenWeather API base URL",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header for requests",
    )
    api_key: str = Field(
        default=OPENWEATHER_SAMPLE_API_KEY,
        description="OpenWeather API key sent as the 'appid' parameter",
    )
    icon_base_url: str = Field(
        default=OPENWEATHER_ICON_BASE_URL,
        description="Base URL of the weather condition icons",
    )
    store_path: str | None = Field(
        default=None,
        description="JSON file persisting the city store; in memory only when unset",
    )

    def openweather_configuration(self) -> BackendConfiguration:
        """Backend configuration pointing at the OpenWeather API."""
        return BackendConfiguration.from_settings(self)


@lru_cache
def get_settings() -> OpenWeatherSettings:
    """
    Provides access to the meteoapp settings.

    Returns:
        OpenWeatherSettings: The cached settings instance.
    """
    return OpenWeatherSettings()

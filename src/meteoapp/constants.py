"""Constants used throughout the meteoapp package.

This module defines the OpenWeather base URLs, the sample API key and the
endpoint names used by the weather requests.
"""

from enum import Enum

# Base URLs
OPENWEATHER_BASE_URL = "https://samples.openweathermap.org/data/2.5"
OPENWEATHER_ICON_BASE_URL = "https://openweathermap.org/img/w"

# Public key of the OpenWeather samples server.
OPENWEATHER_SAMPLE_API_KEY = "b6907d289e10d714a6e88b30761fae22"


class EndpointName(Enum):
    CURRENT_WEATHER = "weather"
    FORECAST = "forecast"


FORECAST_OBJECT_KEY = "list"

METEOAPP_VERSION: str = "0.1.0"
DEFAULT_USER_AGENT: str = f"meteoapp/{METEOAPP_VERSION}"

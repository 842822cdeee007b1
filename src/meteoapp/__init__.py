"""Meteoapp: predefined cities and their OpenWeather current weather and forecast.

Built on the meteokit backend / mapping layer: city records are mapped into an
object store, weather responses are mapped into immutable Weather models.
"""

__version__ = "0.1.0"

from .config import OpenWeatherSettings, get_settings
from .models import City, Weather
from .resources import CitiesClient, WeatherClient, load_predefined_cities
from .session import MeteoSession

__all__ = [
    "__version__",
    "CitiesClient",
    "City",
    "MeteoSession",
    "OpenWeatherSettings",
    "Weather",
    "WeatherClient",
    "get_settings",
    "load_predefined_cities",
]

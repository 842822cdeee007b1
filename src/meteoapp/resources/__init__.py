"""Resource clients of the weather application."""

from .cities_client import CitiesClient, load_predefined_cities
from .weather_client import WeatherClient

__all__ = ["CitiesClient", "WeatherClient", "load_predefined_cities"]

"""Weather lookups for stored cities."""

from meteokit.backend import BackendService
from meteokit.exceptions import MissingAttributeError
from meteokit.log_config import logger
from meteokit.mappers import process_array, process_single

from ..config import OpenWeatherSettings
from ..endpoints import current_weather_request, forecast_request
from ..mappers import WeatherResponseMapper
from ..models import City, Weather


class WeatherClient:
    """Fetches current weather and forecasts from the OpenWeather API.

    Attributes:
        _backend: The BackendService configured for OpenWeather.
        _settings: Settings providing the API key.
    """

    def __init__(self, backend: BackendService, settings: OpenWeatherSettings):
        self._backend = backend
        self._settings = settings
        logger.debug(f"{self.__class__.__name__} initialized")

    @staticmethod
    def _city_name(city: City) -> str:
        if not city.name:
            raise MissingAttributeError(f"City {city.object_id} has no name.")
        return city.name

    async def current(self, city: City) -> Weather:
        """Current weather for a city.

        Raises:
            MissingAttributeError: If the city has no name or the response lacks
                the weather condition.
            FetchError: If the API call fails.
        """
        request = current_weather_request(
            self._city_name(city), city.country_code, self._settings.api_key
        )
        json_object = await self._backend.fetch(request)
        return process_single(json_object, WeatherResponseMapper.process)

    async def forecast(self, city: City) -> list[Weather]:
        """Forecast entries for a city; malformed entries are skipped.

        Raises:
            MissingAttributeError: If the city has no name.
            InvalidFormatError: If the forecast list is not an array of objects.
            FetchError: If the API call fails.
        """
        request = forecast_request(
            self._city_name(city), city.country_code, self._settings.api_key
        )
        entries = await self._backend.fetch(request)
        return process_array(entries, WeatherResponseMapper.process)

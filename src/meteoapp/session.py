"""Main user-facing session class of the weather application."""

from pathlib import Path
from typing import Self

from meteokit.backend import BackendService
from meteokit.log_config import configure_logging, logger
from meteokit.network import NetworkService
from meteokit.store import MemoryObjectStore, ObjectStore

from .config import OpenWeatherSettings, get_settings
from .models import City, Weather
from .resources import CitiesClient, WeatherClient

configure_logging(get_settings().log_level)


class MeteoSession:
    """High-level entry point: stored cities plus their weather.

    The session owns a BackendService configured for OpenWeather and an
    ObjectStore holding the cities. It supports asynchronous context
    management (`async with`), which closes the HTTP client on exit.

    Example:
    ```python
    async with MeteoSession() as session:
        session.load_predefined_cities()
        nantes = next(c for c in session.cities() if c.name == "Nantes")
        weather = await session.current_weather(nantes)
    ```

    Attributes:
        settings (OpenWeatherSettings): The settings in use.
        store (ObjectStore): The store holding City records.
        _backend (BackendService): The underlying backend service.
    """

    def __init__(
        self,
        settings: OpenWeatherSettings | None = None,
        store: ObjectStore | None = None,
        backend: BackendService | None = None,
    ):
        """Initializes the session.

        Args:
            settings: Settings to use instead of the ones loaded from the environment.
            store: ObjectStore to use. Defaults to a MemoryObjectStore, persisted
                to `settings.store_path` when set.
            backend: BackendService to use. Defaults to one built from the settings.
        """
        self.settings = settings or get_settings()
        if store is None:
            path = Path(self.settings.store_path) if self.settings.store_path else None
            store = MemoryObjectStore(path)
        self.store = store
        self._backend = backend or BackendService(
            self.settings.openweather_configuration(),
            NetworkService(user_agent=self.settings.user_agent),
        )
        self._cities = CitiesClient(self.store)
        self._weather = WeatherClient(self._backend, self.settings)
        logger.info(f"MeteoSession initialized for API: {self.settings.base_url}")

    @property
    def cities_client(self) -> CitiesClient:
        return self._cities

    @property
    def weather_client(self) -> WeatherClient:
        return self._weather

    def cities(self) -> list[City]:
        """All stored cities, sorted by name."""
        return self._cities.all()

    def load_predefined_cities(self, path: Path | str | None = None) -> list[City]:
        return self._cities.load_predefined(path)

    async def current_weather(self, city: City) -> Weather:
        return await self._weather.current(city)

    async def forecast(self, city: City) -> list[Weather]:
        return await self._weather.forecast(city)

    def icon_url(self, weather: Weather) -> str:
        return weather.icon_url(self.settings.icon_base_url)

    async def close(self) -> None:
        """Closes the underlying HTTP client."""
        await self._backend.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

"""Response mappers for the weather application payloads."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from meteokit.exceptions import MissingAttributeError
from meteokit.keys import value_for
from meteokit.store import ObjectStore

from .models import City, Weather


class CityResponseMapper:
    """Maps a city JSON object into a City record of the store.

    Expected payload:
    ```json
    {
        "identifier": 2990969,
        "name": "Nantes",
        "countryCode": "FR",
        "location": {"latitude": 47.2172, "longitude": -1.5534}
    }
    ```
    """

    class Key(str, Enum):
        IDENTIFIER = "identifier"
        NAME = "name"
        LATITUDE = "location.latitude"
        LONGITUDE = "location.longitude"
        COUNTRY_CODE = "countryCode"

    @classmethod
    def process(cls, json_object: Any, store: ObjectStore) -> City:
        identifier = value_for(json_object, cls.Key.IDENTIFIER, int)
        name = value_for(json_object, cls.Key.NAME, str)
        country_code = value_for(json_object, cls.Key.COUNTRY_CODE, str)
        latitude = value_for(json_object, cls.Key.LATITUDE, float)
        longitude = value_for(json_object, cls.Key.LONGITUDE, float)
        if None in (identifier, name, country_code, latitude, longitude):
            raise MissingAttributeError("City payload is missing an attribute.")
        city = store.upsert(City, identifier)
        city.name = name
        city.country_code = country_code
        city.latitude = latitude
        city.longitude = longitude
        return city

    @classmethod
    def process_item(cls, json_object: Any, offset: int, store: ObjectStore) -> City:
        """Signature expected by the store-aware array mappers."""
        return cls.process(json_object, store)


class WeatherResponseMapper:
    """Maps an OpenWeather condition entry into a Weather.

    Only the first element of `weather` is kept. `dt` (a UNIX timestamp) is
    optional.
    """

    class Key(str, Enum):
        TIMESTAMP = "dt"
        WEATHER = "weather"
        MAIN_WEATHER = "main"
        WEATHER_DESCRIPTION = "description"
        WEATHER_ICON_NAME = "icon"

    @classmethod
    def process(cls, json_object: Any) -> Weather:
        raw_weathers = value_for(json_object, cls.Key.WEATHER, list)
        if not raw_weathers or not isinstance(raw_weathers[0], dict):
            raise MissingAttributeError("Weather payload has no condition.")
        raw_weather = raw_weathers[0]
        main = value_for(raw_weather, cls.Key.MAIN_WEATHER, str)
        description = value_for(raw_weather, cls.Key.WEATHER_DESCRIPTION, str)
        icon = value_for(raw_weather, cls.Key.WEATHER_ICON_NAME, str)
        if main is None or description is None or icon is None:
            raise MissingAttributeError("Weather condition is missing an attribute.")
        timestamp = value_for(json_object, cls.Key.TIMESTAMP, float)
        date = datetime.fromtimestamp(timestamp, UTC) if timestamp is not None else None
        return Weather(date=date, main=main, description=description, icon=icon)

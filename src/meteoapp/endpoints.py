"""OpenWeather request descriptions.

Both requests query by city name (optionally qualified by a country code)
and authenticate with the `appid` parameter. The forecast response wraps its
entries in a top-level `list` array, which is extracted by the backend.
"""

from meteokit.requests import BackendRequest, HTTPMethod

from .constants import FORECAST_OBJECT_KEY, EndpointName


def city_parameters(city_name: str, country_code: str | None, token: str) -> dict[str, str]:
    query = f"{city_name},{country_code}" if country_code else city_name
    return {"q": query, "appid": token}


def current_weather_request(
    city_name: str, country_code: str | None, token: str
) -> BackendRequest:
    """Current conditions for a city."""
    return BackendRequest(
        endpoint=EndpointName.CURRENT_WEATHER.value,
        method=HTTPMethod.GET,
        parameters=city_parameters(city_name, country_code, token),
    )


def forecast_request(city_name: str, country_code: str | None, token: str) -> BackendRequest:
    """Multi-day forecast for a city, one entry per time step."""
    return BackendRequest(
        endpoint=EndpointName.FORECAST.value,
        method=HTTPMethod.GET,
        parameters=city_parameters(city_name, country_code, token),
        object_key=FORECAST_OBJECT_KEY,
    )

import json
from datetime import datetime

import httpx
import pytest

from meteokit.auth import StaticTokenAuth
from meteokit.backend import BackendConfiguration, BackendService, encode_form_parameters
from meteokit.config import MeteokitSettings
from meteokit.exceptions import ErrorKind, FetchError
from meteokit.requests import BackendRequest, BodyType, HTTPMethod, ResponseShape

API_BASE_URL = "https://api.example.com/v1"


class RecordingAuth:
    """Authenticator remembering what it was asked to sign."""

    def __init__(self):
        self.calls: list[tuple[str, bytes | None]] = []

    async def authentication_headers(self, url: str, body: bytes | None) -> dict[str, str]:
        self.calls.append((url, body))
        return {"X-Signature": "signed"}


class FailingAuth:
    async def authentication_headers(self, url: str, body: bytes | None) -> dict[str, str]:
        raise RuntimeError("keychain locked")


# --- Parameter encoding ---


def test_encode_form_parameters_keeps_insertion_order():
    assert encode_form_parameters({"q": "Paris,FR", "appid": "X"}) == "q=Paris,FR&appid=X"


def test_encode_form_parameters_arrays():
    assert encode_form_parameters({"order": ["a", "b"]}) == "order[]=a&order[]=b"


def test_encode_form_parameters_escapes_and_formats_scalars():
    encoded = encode_form_parameters({"name": "Saint Étienne", "active": True, "n": 3})
    assert encoded == "name=Saint%20%C3%89tienne&active=true&n=3"


# --- URL resolution ---


def test_resolve_relative_endpoint(backend: BackendService):
    assert backend.resolve_url("weather") == f"{API_BASE_URL}/weather"
    assert backend.resolve_url("/weather") == f"{API_BASE_URL}/weather"


def test_resolve_absolute_endpoint_is_used_verbatim(backend: BackendService):
    assert backend.resolve_url("https://other.example.org/x") == "https://other.example.org/x"


def test_resolve_without_base_url_assumes_http():
    service = BackendService(BackendConfiguration())
    assert service.resolve_url("example.org/status") == "http://example.org/status"


@pytest.mark.parametrize("endpoint", ["", "/"])
def test_resolve_unbuildable_url_is_wrong_url(endpoint):
    service = BackendService(BackendConfiguration())
    with pytest.raises(FetchError) as exc_info:
        service.resolve_url(endpoint)
    assert exc_info.value.kind is ErrorKind.WRONG_URL
    assert exc_info.value.status_code == 0


# --- Request preparation ---


@pytest.mark.asyncio
async def test_prepare_get_puts_parameters_in_query(backend: BackendService):
    request = BackendRequest(endpoint="forecast", parameters={"q": "Paris,FR", "appid": "X"})
    prepared = await backend.prepare(request)

    assert prepared.url == f"{API_BASE_URL}/forecast?q=Paris,FR&appid=X"
    assert prepared.body is None
    assert prepared.headers == {"Content-Type": "application/x-www-form-urlencoded"}


@pytest.mark.asyncio
async def test_prepare_get_replaces_existing_query(backend: BackendService):
    request = BackendRequest(endpoint="https://other.example.org/a?stale=1", parameters={"x": 1})
    prepared = await backend.prepare(request)
    assert prepared.url == "https://other.example.org/a?x=1"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", [HTTPMethod.POST, HTTPMethod.PUT])
async def test_prepare_post_and_put_put_parameters_in_body(backend, method):
    request = BackendRequest(
        endpoint="tokens", method=method, parameters={"user": "joe", "tags": ["a", "b"]}
    )
    prepared = await backend.prepare(request)

    assert prepared.url == f"{API_BASE_URL}/tokens"
    assert prepared.body == b"user=joe&tags[]=a&tags[]=b"


@pytest.mark.asyncio
async def test_prepare_delete_puts_parameters_in_query(backend: BackendService):
    request = BackendRequest(endpoint="tokens", method=HTTPMethod.DELETE, parameters={"id": 4})
    prepared = await backend.prepare(request)
    assert prepared.url == f"{API_BASE_URL}/tokens?id=4"
    assert prepared.body is None


@pytest.mark.asyncio
@pytest.mark.parametrize("method", [HTTPMethod.GET, HTTPMethod.POST])
async def test_prepare_raw_json_always_uses_body(backend, method):
    request = BackendRequest(
        endpoint="search",
        method=method,
        parameters={"city": "Lyon", "ids": [1, 2]},
        body_type=BodyType.RAW_JSON,
    )
    prepared = await backend.prepare(request)

    assert prepared.url == f"{API_BASE_URL}/search"
    assert json.loads(prepared.body) == {"city": "Lyon", "ids": [1, 2]}
    assert prepared.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_prepare_without_parameters(backend: BackendService):
    prepared = await backend.prepare(BackendRequest(endpoint="status"))
    assert prepared.url == f"{API_BASE_URL}/status"
    assert prepared.body is None


@pytest.mark.asyncio
async def test_prepare_uses_declared_headers(backend: BackendService):
    request = BackendRequest(endpoint="status", headers={"Accept": "text/plain"})
    prepared = await backend.prepare(request)
    assert prepared.headers == {"Accept": "text/plain"}


@pytest.mark.asyncio
async def test_authenticator_headers_win_and_see_final_url():
    auth = RecordingAuth()
    service = BackendService(BackendConfiguration(API_BASE_URL, auth))
    request = BackendRequest(
        endpoint="weather",
        parameters={"q": "Lyon"},
        headers={"X-Signature": "unsigned", "Accept": "application/json"},
    )
    prepared = await service.prepare(request)

    assert prepared.headers == {"X-Signature": "signed", "Accept": "application/json"}
    assert auth.calls == [(f"{API_BASE_URL}/weather?q=Lyon", None)]


@pytest.mark.asyncio
async def test_prepare_wrong_url_carries_request():
    request = BackendRequest(endpoint="")
    with pytest.raises(FetchError) as exc_info:
        await BackendService(BackendConfiguration()).prepare(request)
    assert exc_info.value.kind is ErrorKind.WRONG_URL
    assert exc_info.value.request is request


@pytest.mark.asyncio
async def test_prepare_unencodable_json_is_unhandled(backend: BackendService):
    request = BackendRequest(
        endpoint="events",
        method=HTTPMethod.POST,
        parameters={"when": datetime(2026, 1, 1)},
        body_type=BodyType.RAW_JSON,
    )
    with pytest.raises(FetchError) as exc_info:
        await backend.prepare(request)
    assert exc_info.value.kind is ErrorKind.UNHANDLED_ERROR
    assert exc_info.value.request is request
    assert isinstance(exc_info.value.__cause__, TypeError)


@pytest.mark.asyncio
async def test_prepare_authenticator_failure_is_unhandled():
    service = BackendService(BackendConfiguration(API_BASE_URL, FailingAuth()))
    with pytest.raises(FetchError) as exc_info:
        await service.prepare(BackendRequest(endpoint="weather"))
    assert exc_info.value.kind is ErrorKind.UNHANDLED_ERROR
    assert isinstance(exc_info.value.__cause__, RuntimeError)


# --- Default configuration ---


def test_default_configuration_is_captured_at_construction():
    default = BackendConfiguration(base_url="https://default.example.com")
    default.set_as_default()

    service = BackendService()
    BackendConfiguration(base_url="https://later.example.com").set_as_default()

    assert service.configuration is default
    assert BackendService().configuration.base_url == "https://later.example.com"


def test_default_configuration_starts_empty():
    assert BackendConfiguration.default().base_url is None
    assert BackendConfiguration.default().authenticator is None


def test_configuration_from_settings():
    settings = MeteokitSettings(base_url="https://settings.example.com")
    auth = StaticTokenAuth("abc")
    configuration = BackendConfiguration.from_settings(settings, auth)
    assert configuration.base_url == "https://settings.example.com"
    assert configuration.authenticator is auth


# --- Fetching and shaping ---


@pytest.mark.asyncio
async def test_fetch_object(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/city?id=1", json={"name": "Lyon"})
    result = await backend.fetch(BackendRequest(endpoint="city", parameters={"id": 1}))
    assert result == {"name": "Lyon"}


@pytest.mark.asyncio
async def test_fetch_object_key_extraction(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/forecast", json={"list": [{"a": 1}]})
    result = await backend.fetch(BackendRequest(endpoint="forecast", object_key="list"))
    assert result == [{"a": 1}]


@pytest.mark.asyncio
async def test_fetch_missing_object_key_is_unreadable(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/forecast", json={"list": [{"a": 1}]})
    with pytest.raises(FetchError) as exc_info:
        await backend.fetch(BackendRequest(endpoint="forecast", object_key="missing"))
    assert exc_info.value.kind is ErrorKind.UNREADABLE_RESPONSE
    assert exc_info.value.status_code == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [b"not json", b"[1, 2]", b""])
async def test_fetch_non_object_is_unreadable(httpx_mock, backend: BackendService, content):
    httpx_mock.add_response(url=f"{API_BASE_URL}/city", content=content)
    with pytest.raises(FetchError) as exc_info:
        await backend.fetch(BackendRequest(endpoint="city"))
    assert exc_info.value.kind is ErrorKind.UNREADABLE_RESPONSE


@pytest.mark.asyncio
async def test_fetch_text(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/motd", content="Beau temps".encode())
    request = BackendRequest(endpoint="motd", response_shape=ResponseShape.TEXT)
    assert await backend.fetch(request) == "Beau temps"


@pytest.mark.asyncio
async def test_fetch_text_not_utf8_is_unreadable(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/motd", content=b"\xff\xfe\xfa")
    request = BackendRequest(endpoint="motd", response_shape=ResponseShape.TEXT)
    with pytest.raises(FetchError) as exc_info:
        await backend.fetch(request)
    assert exc_info.value.kind is ErrorKind.UNREADABLE_RESPONSE


@pytest.mark.asyncio
async def test_fetch_data_returns_raw_bytes(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/icon.png", content=b"\x89PNG")
    request = BackendRequest(endpoint="icon.png", response_shape=ResponseShape.DATA)
    assert await backend.fetch(request) == b"\x89PNG"


@pytest.mark.asyncio
async def test_fetch_failure_carries_status_and_json(httpx_mock, backend: BackendService):
    httpx_mock.add_response(
        url=f"{API_BASE_URL}/city", status_code=404, json={"message": "city not found"}
    )
    with pytest.raises(FetchError) as exc_info:
        await backend.fetch(BackendRequest(endpoint="city"))
    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.status_code == 404
    assert exc_info.value.json == {"message": "city not found"}


@pytest.mark.asyncio
async def test_fetch_failure_with_html_body_has_no_json(httpx_mock, backend: BackendService):
    httpx_mock.add_response(
        url=f"{API_BASE_URL}/city", status_code=500, content=b"<!DOCTYPE html><p>oops</p>"
    )
    with pytest.raises(FetchError) as exc_info:
        await backend.fetch(BackendRequest(endpoint="city"))
    assert exc_info.value.kind is ErrorKind.UNKNOWN_ERROR
    assert exc_info.value.status_code == 500
    assert exc_info.value.json is None


@pytest.mark.asyncio
async def test_fetch_timeout(httpx_mock, backend: BackendService):
    httpx_mock.add_exception(httpx.ConnectTimeout("Timed out"))
    with pytest.raises(FetchError) as exc_info:
        await backend.fetch(BackendRequest(endpoint="city"))
    assert exc_info.value.kind is ErrorKind.TIMEOUT
    assert exc_info.value.status_code == 0


@pytest.mark.asyncio
async def test_fetch_sends_authenticator_header(httpx_mock):
    httpx_mock.add_response(url=f"{API_BASE_URL}/me", method="GET", json={})
    configuration = BackendConfiguration(API_BASE_URL, StaticTokenAuth("secret"))
    async with BackendService(configuration) as service:
        await service.fetch(BackendRequest(endpoint="me"))
    assert httpx_mock.get_request().headers["Authorization"] == "Bearer secret"


# --- Callback form ---


@pytest.mark.asyncio
async def test_fetch_then_calls_success_once(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/city", json={"name": "Paris"})
    successes, failures = [], []

    task = backend.fetch_then(
        BackendRequest(endpoint="city"),
        successes.append,
        lambda *args: failures.append(args),
    )
    await task

    assert successes == [{"name": "Paris"}]
    assert failures == []


@pytest.mark.asyncio
async def test_fetch_then_calls_failure_once(httpx_mock, backend: BackendService):
    httpx_mock.add_response(url=f"{API_BASE_URL}/city", status_code=401, json={"cod": 401})
    successes, failures = [], []

    await backend.fetch_then(
        BackendRequest(endpoint="city"),
        successes.append,
        lambda *args: failures.append(args),
    )

    assert successes == []
    assert failures == [({"cod": 401}, ErrorKind.UNAUTHORIZED, 401)]


@pytest.mark.asyncio
async def test_fetch_then_reports_preparation_failures(backend: BackendService):
    successes, failures = [], []

    await backend.fetch_then(
        BackendRequest(
            endpoint="events",
            method=HTTPMethod.POST,
            parameters={"when": datetime(2026, 1, 1)},
            body_type=BodyType.RAW_JSON,
        ),
        successes.append,
        lambda *args: failures.append(args),
    )
    failing = BackendService(BackendConfiguration(API_BASE_URL, FailingAuth()))
    await failing.fetch_then(
        BackendRequest(endpoint="weather"),
        successes.append,
        lambda *args: failures.append(args),
    )

    assert successes == []
    assert failures == [
        (None, ErrorKind.UNHANDLED_ERROR, 0),
        (None, ErrorKind.UNHANDLED_ERROR, 0),
    ]

"""Backend service: turns BackendRequest descriptions into typed results.

This module holds the BackendConfiguration (base URL plus optional
authenticator, with a process-wide default) and the BackendService, which
resolves the URL, encodes parameters, merges authentication headers, delegates
the call to a NetworkService and finally reads the response body according to
the request's declared ResponseShape.
"""

import asyncio
import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any, ClassVar, Self
from urllib.parse import quote, urlsplit

import httpx

from .auth import BackendAuthenticator
from .config import MeteokitSettings
from .exceptions import ErrorKind, FetchError, NetworkServiceError
from .log_config import logger
from .network import NetworkService
from .requests import BackendRequest, BodyType, PreparedRequest, ResponseShape

# Characters left as-is in encoded form parameters.
FORM_SAFE_CHARACTERS = "-._~,:/@!$'()*;[]"

SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[dict[str, Any] | None, ErrorKind, int], None]


class BackendConfiguration:
    """Where requests go and how they are signed.

    A process-wide default exists; it starts empty and is only replaced by an
    explicit `set_as_default()` call. BackendService instances capture their
    configuration when they are constructed.

    Attributes:
        base_url: Absolute URL that relative endpoints are appended to.
        authenticator: Optional authenticator producing headers for each request.
    """

    _default: ClassVar["BackendConfiguration | None"] = None

    def __init__(
        self,
        base_url: str | None = None,
        authenticator: BackendAuthenticator | None = None,
    ):
        self.base_url = base_url
        self.authenticator = authenticator

    @classmethod
    def from_settings(
        cls,
        settings: MeteokitSettings,
        authenticator: BackendAuthenticator | None = None,
    ) -> "BackendConfiguration":
        return cls(base_url=settings.base_url, authenticator=authenticator)

    @classmethod
    def default(cls) -> "BackendConfiguration":
        """Returns the process-wide default configuration, creating an empty one if needed."""
        if cls._default is None:
            cls._default = cls()
        return cls._default

    @classmethod
    def reset_default(cls) -> None:
        """Replaces the process-wide default with an empty configuration."""
        cls._default = cls()

    def set_as_default(self) -> None:
        """Makes this configuration the process-wide default."""
        BackendConfiguration._default = self
        logger.debug(f"Default backend configuration set to base URL {self.base_url}")

    def __repr__(self) -> str:
        return (
            f"BackendConfiguration(base_url={self.base_url!r}, "
            f"authenticator={type(self.authenticator).__name__ if self.authenticator else None})"
        )


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_form_parameters(parameters: Mapping[str, Any]) -> str:
    """Serializes parameters as a form-encoded string, keeping insertion order.

    Scalars become `key=value`; sequences become repeated `key[]=element`
    pairs, e.g. `order[]=intl_title&order[]=publication`.
    """
    pairs: list[str] = []
    for key, value in parameters.items():
        if isinstance(value, Sequence) and not isinstance(value, str | bytes):
            pairs.extend(
                f"{quote(f'{key}[]', safe=FORM_SAFE_CHARACTERS)}="
                f"{quote(_format_value(element), safe=FORM_SAFE_CHARACTERS)}"
                for element in value
            )
        else:
            pairs.append(
                f"{quote(str(key), safe=FORM_SAFE_CHARACTERS)}="
                f"{quote(_format_value(value), safe=FORM_SAFE_CHARACTERS)}"
            )
    return "&".join(pairs)


def _is_absolute(endpoint: str) -> bool:
    return urlsplit(endpoint).scheme.lower() in ("http", "https")


def _is_valid_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class BackendService:
    """Fetches BackendRequests and returns their shaped results.

    Failures of every kind are raised as FetchError carrying the ErrorKind, the
    HTTP status code (0 when the failure did not come from an HTTP status) and
    the failure body parsed as a JSON object when possible. Results are
    returned to the awaiting coroutine, i.e. on the caller's event loop.

    Attributes:
        configuration: The BackendConfiguration captured at construction.
        _network_service: The NetworkService executing the calls.
    """

    def __init__(
        self,
        configuration: BackendConfiguration | None = None,
        network_service: NetworkService | None = None,
    ):
        """Initialize the BackendService.

        Args:
            configuration: Configuration to use. Defaults to the process-wide
                default at construction time.
            network_service: Optional NetworkService, e.g. one wrapping a
                caller-owned httpx client.
        """
        self.configuration = configuration or BackendConfiguration.default()
        self._network_service = network_service or NetworkService()
        logger.debug(f"BackendService initialized with {self.configuration!r}")

    def resolve_url(self, endpoint: str) -> str:
        """Resolves an endpoint against the configured base URL.

        Raises:
            FetchError: With kind WRONG_URL if no valid URL can be built.
        """
        if _is_absolute(endpoint):
            candidate = endpoint
        elif self.configuration.base_url:
            candidate = f"{self.configuration.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        else:
            candidate = f"http://{endpoint}"
        if not _is_valid_url(candidate):
            raise FetchError(
                f"Cannot build a URL from endpoint {endpoint!r}",
                kind=ErrorKind.WRONG_URL,
            )
        return candidate

    async def prepare(self, request: BackendRequest) -> PreparedRequest:
        """Resolves URL, body and headers for a request.

        Raises:
            FetchError: With kind WRONG_URL if the URL cannot be built, or
                UNHANDLED_ERROR if the parameters cannot be encoded or the
                authenticator fails.
        """
        try:
            url = self.resolve_url(request.endpoint)
        except FetchError as e:
            e.request = request
            raise
        body: bytes | None = None

        if request.parameters is not None:
            try:
                if request.body_type is BodyType.RAW_JSON:
                    body = json.dumps(request.parameters).encode("utf-8")
                else:
                    query_string = encode_form_parameters(request.parameters)
                    if request.method.sends_body:
                        body = query_string.encode("utf-8")
                    else:
                        url = urlsplit(url)._replace(query=query_string).geturl()
            except (TypeError, ValueError) as e:
                raise FetchError(
                    f"Cannot encode parameters for {request.endpoint}: {e}",
                    kind=ErrorKind.UNHANDLED_ERROR,
                    request=request,
                ) from e

        headers = request.effective_headers()
        if self.configuration.authenticator is not None:
            try:
                auth_headers = await self.configuration.authenticator.authentication_headers(
                    url, body
                )
            except FetchError as e:
                e.request = e.request or request
                raise
            except Exception as e:
                logger.error(f"Authenticator failed for {url}: {e!r}")
                raise FetchError(
                    f"Authentication headers unavailable: {e}",
                    kind=ErrorKind.UNHANDLED_ERROR,
                    request=request,
                ) from e
            headers.update(auth_headers)

        return PreparedRequest(url=url, method=request.method, body=body, headers=headers)

    def _shape(self, request: BackendRequest, data: bytes) -> Any:
        match request.response_shape:
            case ResponseShape.DATA:
                return data
            case ResponseShape.TEXT:
                try:
                    return data.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise self._unreadable(request, "Response is not UTF-8 text") from e
            case ResponseShape.OBJECT:
                try:
                    parsed = json.loads(data)
                except ValueError as e:
                    raise self._unreadable(request, "Response is not valid JSON") from e
                if not isinstance(parsed, dict):
                    raise self._unreadable(request, "Response is not a JSON object")
                if request.object_key is None:
                    return parsed
                if request.object_key not in parsed:
                    raise self._unreadable(
                        request, f"Response has no '{request.object_key}' key"
                    )
                return parsed[request.object_key]
        raise self._unreadable(request, f"Unsupported response shape {request.response_shape}")

    @staticmethod
    def _unreadable(request: BackendRequest, message: str) -> FetchError:
        logger.warning(f"{message} for {request.method.value} {request.endpoint}")
        return FetchError(message, kind=ErrorKind.UNREADABLE_RESPONSE, request=request)

    @staticmethod
    def _parse_failure_body(body: bytes | None) -> dict[str, Any] | None:
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except ValueError:
            return None
        return parsed if isinstance(parsed, dict) else None

    async def fetch(self, request: BackendRequest) -> Any:
        """Performs a request and returns its result shaped per `response_shape`.

        Args:
            request: The request description.

        Returns:
            bytes for DATA, str for TEXT, and for OBJECT the parsed JSON object
            or the value at `object_key`.

        Raises:
            FetchError: On any failure; see ErrorKind for the possible kinds.
        """
        prepared = await self.prepare(request)
        try:
            data = await self._network_service.request(
                prepared.url, prepared.method, prepared.body, prepared.headers
            )
        except NetworkServiceError as e:
            raise FetchError(
                e.message,
                kind=e.kind or ErrorKind.UNKNOWN_ERROR,
                status_code=e.status_code,
                request=request,
                json=self._parse_failure_body(e.body),
            ) from e
        return self._shape(request, data)

    def fetch_then(
        self,
        request: BackendRequest,
        on_success: SuccessCallback,
        on_failure: FailureCallback | None = None,
    ) -> "asyncio.Task[None]":
        """Callback form of `fetch`, scheduled on the running event loop.

        Exactly one of `on_success(result)` or
        `on_failure(json, kind, status_code)` is called, once, on the event
        loop that scheduled the call.

        Returns:
            The task driving the fetch.
        """

        async def run() -> None:
            try:
                result = await self.fetch(request)
            except FetchError as e:
                if on_failure is not None:
                    on_failure(e.json, e.kind or ErrorKind.UNKNOWN_ERROR, e.status_code)
                return
            on_success(result)

        return asyncio.get_running_loop().create_task(run())

    def cancel(self) -> None:
        """Cancels the in-flight network request, if any."""
        self._network_service.cancel()

    async def aclose(self) -> None:
        await self._network_service.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()

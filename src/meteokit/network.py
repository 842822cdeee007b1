# meteokit/network.py
"""Single HTTP call execution and status-code classification."""

import asyncio
import ssl
from typing import Self

import certifi
import httpx

from .config import REQUEST_TIMEOUT, get_settings
from .exceptions import ErrorKind, NetworkServiceError
from .log_config import logger
from .requests import HTTPMethod

SUCCESS_CODES = range(200, 299)
FAILURE_CODES = range(400, 599)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class NetworkService:
    """Executes one HTTP request at a time and classifies its outcome.

    A status in `SUCCESS_CODES` returns the body bytes; anything else raises a
    NetworkServiceError whose `kind` is derived from the status code. Requests
    use a fixed 60 second timeout and bypass every cache.

    Only the most recent request is tracked: starting a new request does not
    cancel a previous one, and `cancel()` aborts the tracked request only.

    Attributes:
        _http_client: The underlying httpx.AsyncClient.
        _should_close_client: Whether this instance owns `_http_client`.
        _task: The in-flight request task, if any.
        _cancelled_task: The task aborted through `cancel()`, if any.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        user_agent: str | None = None,
    ):
        """Initialize the NetworkService.

        Args:
            http_client: Optional pre-configured httpx.AsyncClient instance. When
                omitted, the service creates (and later closes) its own client.
            user_agent: User-Agent of the default client. Defaults to the
                meteokit settings.
        """
        self._user_agent = user_agent or get_settings().user_agent
        self._should_close_client = http_client is None
        self._http_client = http_client or self._create_default_http_client()
        self._task: asyncio.Task[bytes] | None = None
        self._cancelled_task: asyncio.Task[bytes] | None = None

    def _create_default_http_client(self) -> httpx.AsyncClient:
        """Create a default httpx.AsyncClient using the certifi CA bundle.

        Returns:
            httpx.AsyncClient: Client with SSL verification, the fixed request
                timeout and the configured user agent header.
        """
        try:
            verify_ssl: ssl.SSLContext | bool = ssl.create_default_context(
                cafile=certifi.where()
            )
            logger.debug("Using certifi SSL context.")
        except (OSError, ssl.SSLError):
            verify_ssl = True
            logger.warning(
                "certifi bundle failed to load. Using default SSL verification."
            )

        return httpx.AsyncClient(
            timeout=REQUEST_TIMEOUT,
            verify=verify_ssl,
            follow_redirects=False,
            headers={"User-Agent": self._user_agent},
        )

    async def _send(
        self,
        url: str,
        method: HTTPMethod,
        body: bytes | None,
        headers: dict[str, str] | None,
    ) -> bytes:
        request = self._http_client.build_request(
            method.value,
            url,
            content=body,
            headers={**NO_CACHE_HEADERS, **(headers or {})},
        )
        try:
            response = await self._http_client.send(request, stream=True)
        except httpx.TransportError as e:
            logger.error(f"No response for {method.value} {url}: {e}")
            raise NetworkServiceError(
                f"No response received for {method.value} {url}",
                kind=ErrorKind.TIMEOUT,
                status_code=0,
                underlying=e,
            ) from e

        status_code = response.status_code
        try:
            data = await response.aread()
        except httpx.HTTPError as e:
            logger.error(f"Reading response of {url} failed after status {status_code}: {e}")
            raise NetworkServiceError(
                f"Response of {method.value} {url} could not be read",
                kind=ErrorKind.UNHANDLED_ERROR,
                status_code=status_code,
                underlying=e,
            ) from e
        finally:
            await response.aclose()

        logger.debug(f"Received {status_code} for {method.value} {url}")
        if data.lstrip().startswith(b"<!DOCTYPE html>"):
            logger.trace(f"{status_code} HTML content")
        else:
            logger.trace(f"{status_code} {data.decode('utf-8', errors='replace')}")

        if status_code in SUCCESS_CODES:
            return data
        if status_code in FAILURE_CODES:
            raise NetworkServiceError(
                f"Request {method.value} {url} failed with status {status_code}",
                kind=ErrorKind.from_status_code(status_code),
                status_code=status_code,
                body=data,
            )
        raise NetworkServiceError(
            f"Unexpected status {status_code} for {method.value} {url}",
            kind=ErrorKind.UNKNOWN_ERROR,
            status_code=status_code,
            body=data,
        )

    async def request(
        self,
        url: str,
        method: HTTPMethod,
        body: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Execute a request and return the body of a successful response.

        Args:
            url: The absolute URL to call.
            method: The HTTP method.
            body: Optional request body.
            headers: Optional request headers.

        Returns:
            bytes: The response body for a status in 200-298.

        Raises:
            NetworkServiceError: For any other outcome. `status_code` is 0 and
                `kind` is TIMEOUT when no response was received (including when
                the request was cancelled through `cancel()`).
        """
        logger.debug(f"[{method.value}] {url}")
        if body:
            logger.trace(f"Request Body: {body.decode('utf-8', errors='replace')}")
        task = asyncio.ensure_future(self._send(url, method, body, headers))
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._cancelled_task is not task:
                raise
            raise NetworkServiceError(
                f"Request {method.value} {url} was cancelled",
                kind=ErrorKind.TIMEOUT,
                status_code=0,
            ) from None
        finally:
            if self._task is task:
                self._task = None

    def cancel(self) -> None:
        """Abort the in-flight request, if any. Completed requests are unaffected."""
        task = self._task
        if task is None or task.done():
            return
        logger.debug("Cancelling in-flight request.")
        self._cancelled_task = task
        task.cancel()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this service created it."""
        if self._should_close_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.debug("NetworkService internal HTTP client closed.")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()

"""Error taxonomy and exception classes for the meteokit library."""

from enum import Enum
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .requests import BackendRequest


class ErrorKind(Enum):
    """Classification of every failure a backend call can report.

    Network-level kinds are derived from the HTTP status code through
    `from_status_code`; the remaining kinds are raised by the backend layer
    itself while building the request or reading the response.
    """

    WRONG_URL = "wrong_url"
    UNREADABLE_RESPONSE = "unreadable_response"
    TIMEOUT = "timeout"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    UNHANDLED_ERROR = "unhandled_error"
    UNKNOWN_ERROR = "unknown_error"

    @classmethod
    def from_status_code(cls, status_code: int) -> "ErrorKind":
        """Maps a numeric HTTP status code onto an ErrorKind.

        A status code of 0 means no HTTP response was received at all.
        """
        return _STATUS_KINDS.get(status_code, cls.UNKNOWN_ERROR)


_STATUS_KINDS: dict[int, ErrorKind] = {
    0: ErrorKind.TIMEOUT,
    HTTPStatus.BAD_REQUEST: ErrorKind.BAD_REQUEST,
    HTTPStatus.UNAUTHORIZED: ErrorKind.UNAUTHORIZED,
    HTTPStatus.FORBIDDEN: ErrorKind.FORBIDDEN,
    HTTPStatus.NOT_FOUND: ErrorKind.NOT_FOUND,
    HTTPStatus.CONFLICT: ErrorKind.ALREADY_EXISTS,
}


class MeteokitError(Exception):
    """Base exception class for all meteokit errors."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        status_code: int = 0,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            kind: Optional ErrorKind classifying the failure.
            status_code: The HTTP status code, 0 when no response was received.
        """
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code

    def __str__(self) -> str:
        if self.kind is not None and self.status_code:
            return f"{self.message} (Kind: {self.kind.value}, Status: {self.status_code})"
        if self.kind is not None:
            return f"{self.message} (Kind: {self.kind.value})"
        return self.message


class ConfigurationError(MeteokitError):
    """Represents an error in the library's configuration."""

    def __init__(self, message: str):
        super().__init__(message)


class NetworkServiceError(MeteokitError):
    """Raised by NetworkService when a request does not end in a success status.

    Attributes:
        body: The raw response body, if any was received.
        underlying: The transport exception that caused the failure, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status_code: int = 0,
        body: bytes | None = None,
        underlying: BaseException | None = None,
    ):
        super().__init__(message, kind=kind, status_code=status_code)
        self.body = body
        self.underlying = underlying


class FetchError(MeteokitError):
    """Raised by BackendService when a fetch fails.

    Attributes:
        request: The BackendRequest that failed.
        json: The failure body parsed as a JSON object, or None if it was
            absent or not a JSON object.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status_code: int = 0,
        request: "BackendRequest | None" = None,
        json: dict[str, Any] | None = None,
    ):
        super().__init__(message, kind=kind, status_code=status_code)
        self.request = request
        self.json = json


class MappingError(MeteokitError):
    """Base class for errors raised while mapping JSON into typed objects."""


class InvalidFormatError(MappingError):
    """The JSON value does not have the expected structure."""


class MissingAttributeError(MappingError):
    """A mandatory attribute is missing from a JSON object."""


class DatabaseError(MappingError):
    """The object store refused an operation during mapping."""


class AuthError(MeteokitError):
    """Raised when an OAuth token flow fails."""


class RefreshTokenNotFoundError(AuthError):
    """No refresh token is stored, so the access token cannot be refreshed."""


class UnreadableTokenResponseError(AuthError):
    """The token endpoint answered without the expected fields."""

    def __init__(self, message: str):
        super().__init__(message, kind=ErrorKind.UNREADABLE_RESPONSE)

from typing import Protocol, runtime_checkable

from .exceptions import ConfigurationError
from .log_config import logger


@runtime_checkable
class BackendAuthenticator(Protocol):
    """Protocol defining the interface for request authenticators.

    An authenticator signs a fully resolved request: it receives the final URL
    and body and returns the headers to add. Its headers win over the
    request's own headers on key collision.
    """

    async def authentication_headers(
        self, url: str, body: bytes | None
    ) -> dict[str, str]:
        """
        Asynchronously computes the authentication headers for a request.

        Args:
            url: The complete request URL, query string included.
            body: The request body, if any.

        Returns:
            The headers to add to the request.
        """
        ...


class NoAuth:
    """Implements the BackendAuthenticator protocol for requests requiring no authentication."""

    async def authentication_headers(
        self, url: str, body: bytes | None
    ) -> dict[str, str]:
        """Returns no headers as no authentication is needed."""
        logger.trace("Using NoAuth authenticator, no authentication applied.")
        return {}


class StaticTokenAuth:
    """Implements BackendAuthenticator using a static Bearer token.

    This authenticator is suitable for APIs that use a pre-issued, long-lived
    API token. The token is sent in the `Authorization` header as a Bearer token.

    Attributes:
        _token: The static API token.
    """

    def __init__(self, token: str | None):
        """Initializes StaticTokenAuth with the provided API token.

        Args:
            token: The static API token to use for authentication.

        Raises:
            ConfigurationError: If the token is None or empty.
        """
        if not token:
            raise ConfigurationError("StaticTokenAuth requires a non-empty 'token'.")
        self._token: str = token
        logger.debug("StaticTokenAuth initialized.")

    async def authentication_headers(
        self, url: str, body: bytes | None
    ) -> dict[str, str]:
        """Returns the static 'Authorization: Bearer <token>' header."""
        logger.trace("Authenticating request using StaticTokenAuth.")
        return {"Authorization": f"Bearer {self._token}"}

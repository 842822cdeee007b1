"""OAuth2 token lifecycle on top of the BackendService.

The OAuthManager acquires, stores, expires and refreshes an access token and
falls back to an anonymous (client credentials) token when no user token is
usable. `authenticate()` resolves to one of three states:

* AUTHENTICATED: a stored access token is still valid, or was refreshed;
* AUTHENTICATED_ANONYMOUSLY: no usable access token, but an anonymous token
  was obtained;
* UNAUTHENTICATED: neither could be obtained; the result carries the error.

The access token, refresh token and access token expiry are kept in a
TokenStore so that they survive restarts. The anonymous token and its expiry
only live in memory.
"""

from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Self
from urllib.parse import urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict

from .backend import BackendConfiguration, BackendService
from .exceptions import (
    AuthError,
    FetchError,
    MeteokitError,
    RefreshTokenNotFoundError,
    UnreadableTokenResponseError,
)
from .keys import value_for
from .log_config import logger
from .requests import BackendRequest, HTTPMethod, ResponseShape
from .token_store import MemoryTokenStore, TokenStore

ACCESS_TOKEN = "access_token"
REFRESH_TOKEN = "refresh_token"
EXPIRES_IN = "expires_in"

AuthenticationObserver = Callable[[str | None], None]


class StorageKeys:
    """Keys used in the TokenStore."""

    ACCESS_TOKEN = "oauth-access-token"
    REFRESH_TOKEN = "oauth-refresh-token"
    EXPIRATION_DATE = "oauth-access-token-expiration"


class GrantType(str, Enum):
    REFRESH_TOKEN = "refresh_token"
    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    PASSWORD = "password"


class OAuthConfiguration(BaseModel):
    """Client credentials and endpoints of an OAuth2 provider."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    base_url: str
    login_path: str
    token_path: str
    redirect_url: str
    method: HTTPMethod = HTTPMethod.POST

    def _join(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    @property
    def login_endpoint(self) -> str:
        return self._join(self.login_path)

    @property
    def token_endpoint(self) -> str:
        return self._join(self.token_path)


def token_request(
    configuration: OAuthConfiguration,
    grant_type: str,
    parameters: Mapping[str, str] | None = None,
) -> BackendRequest:
    """Builds a token endpoint request.

    The client id, client secret and grant type are always sent; `parameters`
    are merged in without overriding them.
    """
    merged: dict[str, str] = {
        "client_id": configuration.client_id,
        "client_secret": configuration.client_secret,
        "grant_type": grant_type,
    }
    for key, value in (parameters or {}).items():
        merged.setdefault(key, value)
    return BackendRequest(
        endpoint=configuration.token_endpoint,
        method=configuration.method,
        parameters=merged,
        response_shape=ResponseShape.OBJECT,
    )


def refresh_token_request(configuration: OAuthConfiguration, refresh_token: str) -> BackendRequest:
    return token_request(
        configuration,
        GrantType.REFRESH_TOKEN.value,
        {"redirect_uri": configuration.redirect_url, "refresh_token": refresh_token},
    )


def authorization_code_request(configuration: OAuthConfiguration, code: str) -> BackendRequest:
    return token_request(
        configuration,
        GrantType.AUTHORIZATION_CODE.value,
        {"redirect_uri": configuration.redirect_url, "code": code},
    )


def client_credentials_request(configuration: OAuthConfiguration) -> BackendRequest:
    return token_request(configuration, GrantType.CLIENT_CREDENTIALS.value)


def password_request(
    configuration: OAuthConfiguration, username: str, password: str
) -> BackendRequest:
    return token_request(
        configuration,
        GrantType.PASSWORD.value,
        {"username": username, "password": password},
    )


def service_request(
    configuration: OAuthConfiguration, service: str, parameters: Mapping[str, str]
) -> BackendRequest:
    """Token request for a third-party flow; the service name is the grant type."""
    return token_request(configuration, service, parameters)


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_ANONYMOUSLY = "authenticated_anonymously"
    AUTHENTICATED = "authenticated"


class OAuthResult(BaseModel):
    """Outcome of `OAuthManager.authenticate()`."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    state: AuthState
    error: MeteokitError | None = None


class OAuthManager:
    """Manages the OAuth2 tokens of one client.

    The manager also implements the BackendAuthenticator protocol, so it can
    be plugged into a BackendConfiguration to send the current token as a
    Bearer header.

    Attributes:
        configuration: The OAuth provider configuration.
        _token_store: Secure storage for the persisted token facts.
        _backend_service: The service used to call the token endpoint.
        _should_close_backend: Whether this instance owns `_backend_service`.
        _clock: Returns the current time as an aware datetime.
        _token: The current access token, mirrored in the token store.
        _anonymous_token: The current anonymous token.
        _anonymous_expiration: Expiry of the anonymous token.
        _observers: Callbacks notified whenever authentication changes.
    """

    def __init__(
        self,
        configuration: OAuthConfiguration,
        token_store: TokenStore | None = None,
        backend_service: BackendService | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.configuration = configuration
        self._token_store: TokenStore = token_store or MemoryTokenStore()
        self._should_close_backend = backend_service is None
        self._backend_service = backend_service or BackendService(BackendConfiguration())
        self._clock = clock or (lambda: datetime.now(UTC))
        self._token: str | None = None
        self._anonymous_token: str | None = None
        self._anonymous_expiration: datetime | None = None
        self._observers: list[AuthenticationObserver] = []
        logger.debug(f"OAuthManager initialized for {configuration.token_endpoint}")

    # --- Token state ---

    @property
    def token(self) -> str | None:
        return self._token

    @token.setter
    def token(self, value: str | None) -> None:
        self._token = value
        if value is not None:
            self._token_store.set(StorageKeys.ACCESS_TOKEN, value)
        else:
            self._token_store.delete(StorageKeys.ACCESS_TOKEN)
            self._token_store.delete(StorageKeys.REFRESH_TOKEN)

    @property
    def anonymous_token(self) -> str | None:
        return self._anonymous_token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    @property
    def token_expiration(self) -> datetime | None:
        raw = self._token_store.get(StorageKeys.EXPIRATION_DATE)
        if raw is None:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable token expiration date {raw!r}")
            return None

    @property
    def login_url(self) -> str:
        """URL of the provider's login page, for a browser based login."""
        base = urlsplit(self.configuration.base_url)
        path = self.configuration.login_path
        if not path.startswith("/"):
            path = f"/{path}"
        query = urlencode(
            {
                "client_id": self.configuration.client_id,
                "client_secret": self.configuration.client_secret,
                "grant_type": GrantType.CLIENT_CREDENTIALS.value,
                "redirect_uri": self.configuration.redirect_url,
                "response_type": "code",
            }
        )
        return urlunsplit((base.scheme, base.netloc, path, query, ""))

    def should_refresh_token(self) -> bool:
        """True unless a stored expiration date lies in the future."""
        expiration = self.token_expiration
        if expiration is None:
            return True
        remaining = (expiration - self._clock()).total_seconds()
        if remaining > 0:
            logger.debug(f"OAuth token will expire in {remaining:.0f} s.")
            return False
        return True

    def should_refresh_anonymous_token(self) -> bool:
        if self._anonymous_token is None or self._anonymous_expiration is None:
            return True
        remaining = (self._anonymous_expiration - self._clock()).total_seconds()
        if remaining > 0:
            logger.debug(f"Anonymous token will expire in {remaining:.0f} s.")
            return False
        return True

    def recover_token_from_store(self) -> bool:
        """Loads the access token from the token store. Returns True on success."""
        token = self._token_store.get(StorageKeys.ACCESS_TOKEN)
        if not token:
            return False
        self._token = token
        return True

    def store_token(self, payload: Mapping[str, Any]) -> None:
        """Stores the access token, refresh token and expiration of a token response.

        Payloads without a string access token are ignored.
        """
        token = value_for(payload, ACCESS_TOKEN, str)
        if token is None:
            return
        self.token = token
        refresh_token = value_for(payload, REFRESH_TOKEN, str)
        if refresh_token is not None:
            self._token_store.set(StorageKeys.REFRESH_TOKEN, refresh_token)
        expires_in = value_for(payload, EXPIRES_IN, float)
        if expires_in is not None:
            expiration = self._clock() + timedelta(seconds=expires_in)
            self._token_store.set(StorageKeys.EXPIRATION_DATE, expiration.isoformat())
        self._notify(token)

    def authenticated_parameters(
        self, parameters: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Returns `parameters` with the current (or anonymous) token added."""
        with_token = dict(parameters or {})
        current = self._token or self._anonymous_token
        if current is not None:
            with_token[ACCESS_TOKEN] = current
        elif parameters is not None:
            logger.warning("[OAuth] no token available")
        return with_token

    async def authentication_headers(
        self, url: str, body: bytes | None
    ) -> dict[str, str]:
        current = self._token or self._anonymous_token
        if current is None:
            return {}
        return {"Authorization": f"Bearer {current}"}

    # --- Observers ---

    def add_observer(self, observer: AuthenticationObserver) -> None:
        """Registers a callback called with the new token (or None) on every change."""
        self._observers.append(observer)

    def remove_observer(self, observer: AuthenticationObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, token: str | None) -> None:
        for observer in list(self._observers):
            try:
                observer(token)
            except Exception as e:
                logger.error(
                    f"Error executing authentication observer {getattr(observer, '__name__', str(observer))}: {e}"
                )

    # --- Token endpoint calls ---

    async def _request_token(self, request: BackendRequest) -> dict[str, Any]:
        result = await self._backend_service.fetch(request)
        if not isinstance(result, dict):
            raise UnreadableTokenResponseError("Token response is not a JSON object.")
        return result

    async def refresh_token(self) -> None:
        """Refreshes the access token with the stored refresh token.

        Raises:
            RefreshTokenNotFoundError: If no refresh token is stored.
            UnreadableTokenResponseError: If the response holds no access token.
            FetchError: If the token endpoint call fails; the access token is
                cleared in that case.
        """
        refresh_token = self._token_store.get(StorageKeys.REFRESH_TOKEN)
        if refresh_token is None:
            raise RefreshTokenNotFoundError("No refresh token stored.")
        request = refresh_token_request(self.configuration, refresh_token)
        try:
            payload = await self._request_token(request)
        except FetchError:
            self.token = None
            raise
        if value_for(payload, ACCESS_TOKEN, str) is None:
            raise UnreadableTokenResponseError("Refresh response has no access token.")
        self.store_token(payload)

    async def get_anonymous_token(self) -> None:
        """Obtains an anonymous token through the client credentials grant.

        Raises:
            UnreadableTokenResponseError: If the token or its lifetime is missing.
            FetchError: If the token endpoint call fails.
        """
        try:
            payload = await self._request_token(client_credentials_request(self.configuration))
        except FetchError as e:
            logger.error(f"Anonymous token request failed: {e}")
            self._anonymous_token = None
            raise
        token = value_for(payload, ACCESS_TOKEN, str)
        expires_in = value_for(payload, EXPIRES_IN, float)
        if token is None or expires_in is None:
            raise UnreadableTokenResponseError("Anonymous token response is incomplete.")
        self._anonymous_token = token
        self._anonymous_expiration = self._clock() + timedelta(seconds=expires_in)

    async def _login(self, request: BackendRequest) -> None:
        try:
            payload = await self._request_token(request)
        except FetchError as e:
            logger.error(f"Authentication failure: {e}")
            raise
        if (
            value_for(payload, ACCESS_TOKEN, str) is None
            or EXPIRES_IN not in payload
            or REFRESH_TOKEN not in payload
        ):
            raise UnreadableTokenResponseError("Token response is incomplete.")
        self.store_token(payload)

    async def authenticate_with_login(self, username: str, password: str) -> None:
        """Logs in with a username and a password (password grant)."""
        await self._login(password_request(self.configuration, username, password))

    async def authenticate_on(self, service: str, parameters: Mapping[str, str]) -> None:
        """Logs in through a third-party provider named by `service`."""
        await self._login(service_request(self.configuration, service, parameters))

    async def authenticate_with_redirect_code(self, code: str) -> None:
        """Exchanges the code received by the login redirect for a token."""
        await self._login(authorization_code_request(self.configuration, code))

    async def _authenticate_anonymously(self) -> OAuthResult:
        try:
            await self.get_anonymous_token()
        except MeteokitError as e:
            logger.error(f"Cannot get anonymous token: {e}")
            return OAuthResult(state=AuthState.UNAUTHENTICATED, error=e)
        return OAuthResult(state=AuthState.AUTHENTICATED_ANONYMOUSLY)

    async def authenticate(self) -> OAuthResult:
        """Authenticates with the stored token, refreshing it if expired.

        Falls back to an anonymous token when there is no access token or
        when refreshing it fails.
        """
        if self._token is None and not self.recover_token_from_store():
            logger.debug("OAuth: not connected")
            return await self._authenticate_anonymously()

        if not self.should_refresh_token():
            logger.debug("OAuth token still valid")
            return OAuthResult(state=AuthState.AUTHENTICATED)

        logger.info("OAuth token expired! Refreshing...")
        try:
            await self.refresh_token()
        except (AuthError, FetchError) as e:
            logger.warning(f"OAuth refresh token failure: {e}")
            self.token = None
            return await self._authenticate_anonymously()
        logger.info("OAuth refresh token success")
        return OAuthResult(state=AuthState.AUTHENTICATED)

    async def disconnect(self) -> None:
        """Logs out: clears the tokens, then fetches a new anonymous token."""
        self.token = None
        try:
            await self.get_anonymous_token()
        except MeteokitError as e:
            logger.error(f"Cannot get anonymous token after disconnecting: {e}")
        self._notify(None)

    async def aclose(self) -> None:
        """Closes the token endpoint client if this manager created it."""
        if self._should_close_backend:
            await self._backend_service.aclose()
            logger.debug("OAuthManager internal backend service closed.")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()

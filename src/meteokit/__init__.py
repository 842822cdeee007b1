"""Meteokit: backend fetch, response mapping and OAuth toolkit.

This package provides a small request/response/error pipeline for REST APIs:
request descriptions resolved into concrete HTTP calls, status-code
classification into a typed error taxonomy, shaping of the response body,
mapping of decoded JSON into typed objects (optionally upserted into an
object store) and an OAuth2 token lifecycle manager with pluggable secure
storage.
"""

__version__ = "0.1.0"

from . import (
    auth,
    backend,
    config,
    exceptions,
    keys,
    log_config,
    mappers,
    network,
    oauth,
    paging,
    requests,
    store,
    token_store,
)
from .backend import BackendConfiguration, BackendService
from .exceptions import ErrorKind, FetchError, MeteokitError
from .network import NetworkService
from .oauth import AuthState, OAuthConfiguration, OAuthManager, OAuthResult
from .paging import Paging
from .requests import BackendRequest, BodyType, HTTPMethod, ResponseShape

__all__ = [
    "__version__",
    "auth",
    "backend",
    "config",
    "exceptions",
    "keys",
    "log_config",
    "mappers",
    "network",
    "oauth",
    "paging",
    "requests",
    "store",
    "token_store",
    "AuthState",
    "BackendConfiguration",
    "BackendRequest",
    "BackendService",
    "BodyType",
    "ErrorKind",
    "FetchError",
    "HTTPMethod",
    "MeteokitError",
    "NetworkService",
    "OAuthConfiguration",
    "OAuthManager",
    "OAuthResult",
    "Paging",
    "ResponseShape",
]

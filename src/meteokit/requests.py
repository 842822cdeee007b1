# meteokit/requests.py
"""Descriptions of backend API calls.

A `BackendRequest` says what to call and how to read the answer; the
`BackendService` turns it into a `PreparedRequest` (concrete URL, body and
headers) and hands that to the `NetworkService`.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def sends_body(self) -> bool:
        """True for methods that carry form parameters in the body."""
        return self in (HTTPMethod.POST, HTTPMethod.PUT)


class BodyType(str, Enum):
    """How parameters are serialized."""

    FORM_DATA = "form_data"
    RAW_JSON = "raw_json"

    @property
    def content_type(self) -> str:
        if self is BodyType.RAW_JSON:
            return "application/json"
        return "application/x-www-form-urlencoded"


class ResponseShape(str, Enum):
    """How a successful response body is handed back to the caller.

    DATA passes the raw bytes through, TEXT decodes them as UTF-8 and OBJECT
    parses a JSON object, optionally extracting the value at
    `BackendRequest.object_key`.
    """

    DATA = "data"
    TEXT = "text"
    OBJECT = "object"


class BackendRequest(BaseModel):
    """Describes one call to a backend API.

    Attributes:
        endpoint: A path relative to the configured base URL, or an absolute URL.
        method: The HTTP method.
        parameters: Query or body parameters, in insertion order. Values are
            scalars or sequences of scalars.
        body_type: Form-encoded or raw JSON parameters.
        headers: Request headers; None means the default Content-Type header
            for `body_type`.
        response_shape: How the response body should be read.
        object_key: With the OBJECT shape, the top-level key whose value is
            the result.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str
    method: HTTPMethod = HTTPMethod.GET
    parameters: dict[str, Any] | None = None
    body_type: BodyType = BodyType.FORM_DATA
    headers: dict[str, str] | None = None
    response_shape: ResponseShape = ResponseShape.OBJECT
    object_key: str | None = None

    def default_headers(self) -> dict[str, str]:
        return {"Content-Type": self.body_type.content_type}

    def effective_headers(self) -> dict[str, str]:
        """The declared headers, or the defaults for the body type."""
        if self.headers is None:
            return self.default_headers()
        return dict(self.headers)


class PreparedRequest(BaseModel):
    """A fully resolved request, ready for the NetworkService."""

    url: str
    method: HTTPMethod
    body: bytes | None = None
    headers: dict[str, str] = Field(default_factory=dict)

"""Bearer-authenticated requests to protected resources (RFC 6750).

Requests are described by ``HttpRequest``. Callers may hand one over
directly, pass an ``httpx.Request``, a ``(method, uri, headers, body)``
sequence, or discrete keyword fields; each shape has its own builder and is
validated before the Authorization header is added.
"""

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urljoin, urlsplit

import httpx

from ..transport import HttpRequest, HttpResponse, Transport, require_transport
from ..utils.errors import (
    AuthorizationError,
    ConfigurationError,
    InvalidTypeError,
    MissingFieldError,
)
from .credential import Credential

logger = logging.getLogger(__name__)


def bearer_authorization(access_token: str, realm: str | None = None) -> str:
    """Render the Authorization header value for a bearer token.

    Example:
        >>> bearer_authorization("12345", realm="Example")
        'Bearer 12345, realm="Example"'
    """
    if realm is None:
        return f"Bearer {access_token}"
    escaped = realm.replace("\\", "\\\\").replace('"', '\\"')
    return f'Bearer {access_token}, realm="{escaped}"'


def normalize_body(body: Any) -> bytes | None:
    """Convert a request body to bytes.

    Accepts None, str, bytes, a sequence of str/bytes chunks, or an object
    with a ``read()`` method.

    Raises:
        InvalidTypeError: For any other body type
    """
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if callable(getattr(body, "read", None)):
        data = body.read()
        if isinstance(data, str):
            return data.encode("utf-8")
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        raise InvalidTypeError(
            f"read() on request body returned {type(data).__name__}, expected str or bytes",
            field="body",
        )
    if isinstance(body, Sequence):
        chunks = []
        for chunk in body:
            if isinstance(chunk, str):
                chunks.append(chunk.encode("utf-8"))
            elif isinstance(chunk, (bytes, bytearray)):
                chunks.append(bytes(chunk))
            else:
                raise InvalidTypeError(
                    f"Request body chunks must be str or bytes, got {type(chunk).__name__}",
                    field="body",
                )
        return b"".join(chunks)
    raise InvalidTypeError(
        f"Unsupported request body type: {type(body).__name__}",
        field="body",
    )


def _normalize_method(method: Any) -> str:
    if not isinstance(method, str):
        raise InvalidTypeError(
            f"Request method must be a string, got {type(method).__name__}", field="method"
        )
    if not method.strip():
        raise ConfigurationError("Request method must not be empty", field="method")
    return method.strip().upper()


def _normalize_uri(uri: Any) -> str:
    if uri is None:
        raise ConfigurationError(
            "Not enough information to build a request: a URI is required", field="uri"
        )
    if isinstance(uri, httpx.URL):
        return str(uri)
    if not isinstance(uri, str):
        raise InvalidTypeError(f"Request URI must be a string, got {type(uri).__name__}", field="uri")
    return uri


def _normalize_headers(headers: Any) -> dict[str, str]:
    if headers is None:
        return {}
    if not isinstance(headers, Mapping):
        raise InvalidTypeError(
            f"Request headers must be a mapping, got {type(headers).__name__}", field="headers"
        )
    return {str(name): str(value) for name, value in headers.items()}


def request_from_fields(
    method: str = "GET",
    uri: str | httpx.URL | None = None,
    headers: Mapping[str, str] | None = None,
    body: Any = None,
) -> HttpRequest:
    """Build a request from discrete fields."""
    return HttpRequest(
        method=_normalize_method(method),
        uri=_normalize_uri(uri),
        headers=_normalize_headers(headers),
        body=normalize_body(body),
    )


def request_from_sequence(parts: Sequence[Any]) -> HttpRequest:
    """Build a request from ``(method, uri[, headers[, body]])``."""
    if not 2 <= len(parts) <= 4:
        raise ConfigurationError(
            f"Request sequence must be (method, uri[, headers[, body]]), got {len(parts)} items",
            field="request",
        )
    return request_from_fields(*parts)


def request_from_object(request: HttpRequest | httpx.Request) -> HttpRequest:
    """Build a request from an existing HttpRequest or httpx.Request.

    The original object is not modified.
    """
    if isinstance(request, HttpRequest):
        return dataclasses.replace(
            request,
            method=_normalize_method(request.method),
            uri=_normalize_uri(request.uri),
            headers=_normalize_headers(request.headers),
            body=normalize_body(request.body),
        )
    return HttpRequest(
        method=request.method,
        uri=str(request.url),
        headers=dict(request.headers),
        body=request.read() or None,
    )


def coerce_request(
    request: HttpRequest | httpx.Request | Sequence[Any] | None = None,
    method: str = "GET",
    uri: str | httpx.URL | None = None,
    headers: Mapping[str, str] | None = None,
    body: Any = None,
) -> HttpRequest:
    """Dispatch to the builder matching the shape of the request description.

    Raises:
        ConfigurationError: If not enough information is given to build a request
        InvalidTypeError: If the request or one of its parts has the wrong type
    """
    if request is None:
        return request_from_fields(method, uri, headers, body)
    if isinstance(request, (HttpRequest, httpx.Request)):
        return request_from_object(request)
    if isinstance(request, Sequence) and not isinstance(request, (str, bytes)):
        return request_from_sequence(request)
    raise InvalidTypeError(
        f"Unsupported request description: {type(request).__name__}", field="request"
    )


def resolve_request_uri(uri: str, transport: Transport | None) -> str:
    """Make a request URI absolute using the transport's base URL if needed.

    Raises:
        ConfigurationError: If uri is relative and no base URL is available
    """
    if urlsplit(uri).scheme:
        return uri
    base_url = transport.base_url if transport is not None else None
    if not base_url:
        raise ConfigurationError(
            f"Request URI {uri!r} is relative and no transport base URL is available",
            field="uri",
        )
    return urljoin(base_url, uri)


def generate_authenticated_request(
    credential: Credential,
    request: HttpRequest | httpx.Request | Sequence[Any] | None = None,
    method: str = "GET",
    uri: str | httpx.URL | None = None,
    headers: Mapping[str, str] | None = None,
    body: Any = None,
    realm: str | None = None,
    transport: Transport | None = None,
) -> HttpRequest:
    """Add the bearer Authorization header to a request description.

    Args:
        credential: Credential holding the access token
        request: Prebuilt request description; overrides the discrete fields
        method: HTTP method when building from fields
        uri: Request URI when building from fields
        headers: Request headers when building from fields
        body: Request body when building from fields
        realm: Optional realm added to the Authorization header
        transport: Transport whose base URL resolves relative URIs

    Returns:
        A new HttpRequest identical to the description apart from the
        Authorization header

    Raises:
        MissingFieldError: If the credential has no access token
        ConfigurationError: If not enough information is given to build a request
        InvalidTypeError: If a part of the request has the wrong type
    """
    if credential.access_token is None:
        raise MissingFieldError("access_token", "generate an authenticated request")

    built = coerce_request(request, method=method, uri=uri, headers=headers, body=body)
    built.uri = resolve_request_uri(built.uri, transport)

    merged = {name: value for name, value in built.headers.items() if name.lower() != "authorization"}
    merged["Authorization"] = bearer_authorization(credential.access_token, realm)
    built.headers = merged
    return built


def fetch_protected_resource(
    credential: Credential,
    transport: Transport | None,
    request: HttpRequest | httpx.Request | Sequence[Any] | None = None,
    method: str = "GET",
    uri: str | httpx.URL | None = None,
    headers: Mapping[str, str] | None = None,
    body: Any = None,
    realm: str | None = None,
) -> HttpResponse:
    """Send a bearer-authenticated request and return the raw response.

    Error statuses other than 401 are returned to the caller, not raised.

    Raises:
        AuthorizationError: If the resource server answers 401
        MissingFieldError: If the credential has no access token
        ConfigurationError: If the request cannot be built or no transport is given
        TransportError: If the transport fails
    """
    authenticated = generate_authenticated_request(
        credential,
        request,
        method=method,
        uri=uri,
        headers=headers,
        body=body,
        realm=realm,
        transport=transport,
    )
    transport = require_transport(transport, "fetch a protected resource")

    response = transport.send(authenticated)
    if response.status == 401:
        raise AuthorizationError(
            f"Authorization failed for {authenticated.method} {authenticated.uri}",
            status=response.status,
            body=response.text,
        )

    logger.debug(f"{authenticated.method} {authenticated.uri} returned HTTP {response.status}")
    return response

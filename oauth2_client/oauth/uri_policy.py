"""URI validation and authorization URI composition.

Endpoint URIs must be absolute. The authorization endpoint additionally has
to use a secure scheme, since the user agent is sent there with the client's
identity and redirect URI in the query string.
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from ..utils.errors import (
    ConfigurationError,
    InvalidTypeError,
    MissingFieldError,
    UnsafeOperationError,
)

if TYPE_CHECKING:
    from .credential import Credential

logger = logging.getLogger(__name__)

SECURE_SCHEMES = frozenset({"https"})

# Parameters the caller may not override when building the authorization URI
REQUIRED_AUTHORIZATION_PARAMETERS = ("response_type", "client_id", "redirect_uri")


def parse_absolute_uri(value: Any, field: str) -> str:
    """Validate that value is an absolute URI and return it as a string.

    Args:
        value: A string or httpx.URL
        field: Name of the field being set, used in error messages

    Raises:
        InvalidTypeError: If value is not URI-like
        ConfigurationError: If value is a relative reference
    """
    if isinstance(value, httpx.URL):
        value = str(value)
    if not isinstance(value, str):
        raise InvalidTypeError(
            f"{field} must be a URI string, got {type(value).__name__}", field=field
        )

    try:
        scheme = urlsplit(value).scheme
    except ValueError as e:
        raise ConfigurationError(f"{field} is not a valid URI: {value!r}", field=field) from e

    if not scheme:
        raise ConfigurationError(
            f"{field} must be an absolute URI, got relative reference {value!r}", field=field
        )
    return value


def is_secure_uri(uri: str) -> bool:
    """Check whether a URI uses a secure transport scheme."""
    return urlsplit(uri).scheme.lower() in SECURE_SCHEMES


def build_authorization_uri(
    credential: "Credential",
    additional_parameters: Mapping[str, Any] | None = None,
) -> str:
    """Compose the URI the resource owner is sent to for authorization.

    Args:
        credential: Credential holding the endpoint, client ID, redirect URI and scope
        additional_parameters: Extra query parameters (e.g. access_type, prompt).
            They never replace response_type, client_id or redirect_uri.

    Returns:
        Authorization endpoint URI with the authorization request query

    Raises:
        MissingFieldError: If the endpoint, client ID or redirect URI is missing
        UnsafeOperationError: If the endpoint does not use https
    """
    endpoint = credential.authorization_endpoint_uri
    if endpoint is None:
        raise MissingFieldError("authorization_endpoint_uri", "build the authorization URI")
    if credential.client_id is None:
        raise MissingFieldError("client_id", "build the authorization URI")
    if credential.redirect_uri is None:
        raise MissingFieldError("redirect_uri", "build the authorization URI")

    if not is_secure_uri(endpoint):
        raise UnsafeOperationError(
            f"Authorization endpoint must use a secure scheme ({', '.join(sorted(SECURE_SCHEMES))}): "
            f"{endpoint}",
            uri=endpoint,
        )

    parts = urlsplit(endpoint)
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    params["response_type"] = "code"
    params["client_id"] = credential.client_id
    params["redirect_uri"] = credential.redirect_uri
    if credential.scope:
        params["scope"] = " ".join(credential.scope)
    if credential.state is not None:
        params["state"] = credential.state

    for key, value in (additional_parameters or {}).items():
        if key in REQUIRED_AUTHORIZATION_PARAMETERS or value is None:
            continue
        params[key] = str(value)

    uri = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))
    logger.debug(f"Built authorization URI for endpoint {parts.scheme}://{parts.netloc}{parts.path}")
    return uri

"""OAuth 2.0 client support.

This package provides:
- Credential state with validated setters and expiry tracking
- Authorization URI construction with endpoint security checks
- Grant type inference (authorization code, refresh token, password, extensions)
- Token endpoint exchange and response parsing
- Bearer-authenticated requests to protected resources (RFC 6750)
- ID token decoding and signature verification
"""

from .authenticated_request import (
    bearer_authorization,
    coerce_request,
    fetch_protected_resource,
    generate_authenticated_request,
    normalize_body,
)
from .client import OAuth2Client
from .credential import Credential
from .grants import ExtensionGrant, GrantType, coerce_grant_type, resolve_grant_type
from .id_token import decode_id_token, key_algorithms
from .token_exchange import (
    TokenResponse,
    build_token_request,
    build_token_request_body,
    fetch_access_token,
    parse_token_response,
    request_token,
)
from .uri_policy import build_authorization_uri, parse_absolute_uri

__all__ = [
    # Client
    "OAuth2Client",
    "Credential",
    # Grants
    "GrantType",
    "ExtensionGrant",
    "coerce_grant_type",
    "resolve_grant_type",
    # URI policy
    "build_authorization_uri",
    "parse_absolute_uri",
    # Token exchange
    "TokenResponse",
    "build_token_request",
    "build_token_request_body",
    "parse_token_response",
    "request_token",
    "fetch_access_token",
    # Authenticated requests
    "bearer_authorization",
    "coerce_request",
    "normalize_body",
    "generate_authenticated_request",
    "fetch_protected_resource",
    # ID token
    "decode_id_token",
    "key_algorithms",
]

"""OAuth 2.0 client core - credential lifecycle, token exchange and bearer requests."""

__version__ = "0.1.0"

from .core.config import Settings
from .core.logging_config import setup_logging
from .oauth import (
    Credential,
    ExtensionGrant,
    GrantType,
    OAuth2Client,
    TokenResponse,
    bearer_authorization,
    decode_id_token,
)
from .transport import HttpRequest, HttpResponse, HttpxTransport, Transport
from .utils.errors import (
    AuthorizationError,
    ConfigurationError,
    ErrorKind,
    InvalidTypeError,
    MissingFieldError,
    OAuth2Error,
    TokenDecodeError,
    TokenResponseError,
    TokenVerificationError,
    TransportError,
    UnsafeOperationError,
)

__all__ = [
    "OAuth2Client",
    "Credential",
    "GrantType",
    "ExtensionGrant",
    "TokenResponse",
    "bearer_authorization",
    "decode_id_token",
    "Settings",
    "setup_logging",
    # Transport
    "Transport",
    "HttpxTransport",
    "HttpRequest",
    "HttpResponse",
    # Errors
    "ErrorKind",
    "OAuth2Error",
    "InvalidTypeError",
    "ConfigurationError",
    "MissingFieldError",
    "UnsafeOperationError",
    "AuthorizationError",
    "TokenResponseError",
    "TransportError",
    "TokenDecodeError",
    "TokenVerificationError",
]

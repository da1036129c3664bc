"""Utility functions and classes."""

from .errors import (
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

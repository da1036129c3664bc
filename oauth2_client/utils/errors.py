"""Error types for the OAuth 2.0 client core."""

from enum import Enum


class ErrorKind(str, Enum):
    """Semantic category of an OAuth2Error, for branching without isinstance chains."""

    TYPE = "type"
    CONFIGURATION = "configuration"
    UNSAFE_OPERATION = "unsafe_operation"
    AUTHORIZATION = "authorization"
    PARSE = "parse"
    TRANSPORT = "transport"
    DECODE = "decode"
    VERIFICATION = "verification"


class OAuth2Error(Exception):
    """Base exception for OAuth 2.0 client errors."""

    kind: ErrorKind | None = None


class InvalidTypeError(OAuth2Error, TypeError):
    """Raised when a value of the wrong shape is given to a setter or builder."""

    kind = ErrorKind.TYPE

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(OAuth2Error, ValueError):
    """Raised when a required value is missing or an operation cannot be resolved."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class MissingFieldError(ConfigurationError):
    """Raised when an operation needs a credential field that is not set."""

    def __init__(self, field: str, operation: str):
        super().__init__(f"Missing {field}: required to {operation}", field=field)
        self.operation = operation


class UnsafeOperationError(OAuth2Error):
    """Raised when an endpoint would be used over an insecure transport."""

    kind = ErrorKind.UNSAFE_OPERATION

    def __init__(self, message: str, uri: str | None = None):
        super().__init__(message)
        self.uri = uri


class AuthorizationError(OAuth2Error):
    """Raised when the token or resource server rejects the request."""

    kind = ErrorKind.AUTHORIZATION

    def __init__(
        self,
        message: str,
        status: int,
        body: str = "",
        error: str | None = None,
        error_description: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body
        self.error = error
        self.error_description = error_description


class TokenResponseError(OAuth2Error):
    """Raised when a successful token response cannot be parsed."""

    kind = ErrorKind.PARSE

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class TransportError(OAuth2Error):
    """Raised when the underlying transport fails before a response is received."""

    kind = ErrorKind.TRANSPORT


class TokenDecodeError(OAuth2Error):
    """Raised when an ID token is malformed or fails claim validation."""

    kind = ErrorKind.DECODE


class TokenVerificationError(TokenDecodeError):
    """Raised when an ID token signature does not match the supplied key."""

    kind = ErrorKind.VERIFICATION

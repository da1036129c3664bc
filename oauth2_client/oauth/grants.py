"""Grant type resolution.

The grant type of a credential is either set explicitly or inferred from
which grant inputs are present, in a fixed priority order.
"""

from dataclasses import dataclass
from enum import Enum

from ..utils.errors import ConfigurationError, InvalidTypeError
from .uri_policy import parse_absolute_uri


class GrantType(str, Enum):
    """Grant types defined by RFC 6749."""

    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"
    PASSWORD = "password"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExtensionGrant:
    """Extension grant identified by an absolute URI (RFC 6749 Section 4.5)."""

    uri: str

    def __str__(self) -> str:
        return self.uri


def coerce_grant_type(value: "str | GrantType | ExtensionGrant | None") -> "GrantType | ExtensionGrant | None":
    """Convert a grant type value into its canonical or extension form.

    Raises:
        InvalidTypeError: If value is not a string
        ConfigurationError: If a non-canonical value is not an absolute URI
    """
    if value is None or isinstance(value, (GrantType, ExtensionGrant)):
        return value
    if not isinstance(value, str):
        raise InvalidTypeError(
            f"grant_type must be a string, got {type(value).__name__}", field="grant_type"
        )
    try:
        return GrantType(value)
    except ValueError:
        pass
    try:
        return ExtensionGrant(parse_absolute_uri(value, "grant_type"))
    except ConfigurationError as e:
        raise ConfigurationError(
            f"Unknown grant type {value!r}: extension grants must be absolute URIs",
            field="grant_type",
        ) from e


def resolve_grant_type(
    explicit: "GrantType | ExtensionGrant | None" = None,
    code: str | None = None,
    redirect_uri: str | None = None,
    refresh_token: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> "GrantType | ExtensionGrant | None":
    """Determine the grant type from the grant inputs that are present.

    An explicit grant type always wins. Otherwise the first match in this
    order is returned: authorization code (code and redirect URI), refresh
    token, password (username and password). Returns None if nothing matches.
    """
    if explicit is not None:
        return explicit
    if code is not None and redirect_uri is not None:
        return GrantType.AUTHORIZATION_CODE
    if refresh_token is not None:
        return GrantType.REFRESH_TOKEN
    if username is not None and password is not None:
        return GrantType.PASSWORD
    return None

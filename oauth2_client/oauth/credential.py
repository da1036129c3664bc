"""OAuth 2.0 credential state.

A Credential holds the client identity, grant inputs, endpoints and the
tokens obtained from the token endpoint. Every setter validates its input
before assigning, so a Credential never holds an invalid value.
"""

import logging
from collections import UserDict
from collections.abc import Callable, Mapping, Sequence
from functools import partial
from datetime import UTC, datetime, timedelta
from typing import Any

from ..utils.errors import ConfigurationError, InvalidTypeError
from .grants import ExtensionGrant, GrantType, coerce_grant_type, resolve_grant_type
from .uri_policy import parse_absolute_uri

logger = logging.getLogger(__name__)

OPTION_ALIASES = {
    "authorization_uri": "authorization_endpoint_uri",
    "token_endpoint_uri": "token_credential_uri",
    "id_token_raw": "id_token",
}


def coerce_optional_str(value: Any, field: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise InvalidTypeError(f"{field} must be a string, got {type(value).__name__}", field=field)


def coerce_optional_uri(value: Any, field: str) -> str | None:
    if value is None:
        return None
    return parse_absolute_uri(value, field)


def coerce_scope(value: Any) -> list[str]:
    """Normalize a scope given as a space-delimited string or a sequence of strings.

    Raises:
        InvalidTypeError: If value or one of its elements is not a string
        ConfigurationError: If an element contains whitespace
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (bytes, bytearray)) or not isinstance(value, Sequence):
        raise InvalidTypeError(
            f"scope must be a string or a sequence of strings, got {type(value).__name__}",
            field="scope",
        )

    scopes = []
    for element in value:
        if not isinstance(element, str):
            raise InvalidTypeError(
                f"scope elements must be strings, got {type(element).__name__}", field="scope"
            )
        if any(ch.isspace() for ch in element):
            raise ConfigurationError(
                f"scope element {element!r} must not contain whitespace", field="scope"
            )
        if element:
            scopes.append(element)
    return scopes


class ExtensionParameters(UserDict):
    """String-to-string mapping of extension grant parameters.

    Keys and values are converted to strings on every write, including
    in-place item assignment and update().
    """

    def __setitem__(self, key: Any, value: Any) -> None:
        if value is None:
            raise InvalidTypeError(
                f"extension parameter {key!r} must have a value", field="extension_parameters"
            )
        self.data[str(key)] = str(value)


def coerce_extension_parameters(value: Any) -> ExtensionParameters:
    if value is None:
        return ExtensionParameters()
    if not isinstance(value, Mapping):
        raise InvalidTypeError(
            f"extension_parameters must be a mapping, got {type(value).__name__}",
            field="extension_parameters",
        )
    return ExtensionParameters(value)


def coerce_issued_at(value: Any) -> datetime | None:
    """Normalize a timestamp to an aware UTC datetime.

    Naive datetimes are taken to be UTC; numbers are Unix timestamps.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=UTC)
    raise InvalidTypeError(
        f"issued_at must be a datetime or Unix timestamp, got {type(value).__name__}",
        field="issued_at",
    )


def coerce_expires_in(value: Any) -> int | None:
    """Coerce a lifetime in seconds to a non-negative int.

    Token endpoints are known to send expires_in as a string, so numeric
    strings are accepted.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidTypeError("expires_in must be an integer, got bool", field="expires_in")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as e:
            raise ConfigurationError(
                f"expires_in must be an integer, got {value!r}", field="expires_in"
            ) from e
    elif isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationError(
                f"expires_in must be a whole number of seconds, got {value!r}", field="expires_in"
            )
        value = int(value)
    elif not isinstance(value, int):
        raise InvalidTypeError(
            f"expires_in must be an integer, got {type(value).__name__}", field="expires_in"
        )

    if value < 0:
        raise ConfigurationError(f"expires_in must not be negative, got {value}", field="expires_in")
    return value


# Pure validators per field; Credential.update() runs them all before assigning
FIELD_COERCERS: dict[str, Callable[[Any], Any]] = {
    "client_id": partial(coerce_optional_str, field="client_id"),
    "client_secret": partial(coerce_optional_str, field="client_secret"),
    "authorization_endpoint_uri": partial(coerce_optional_uri, field="authorization_endpoint_uri"),
    "token_credential_uri": partial(coerce_optional_uri, field="token_credential_uri"),
    "redirect_uri": partial(coerce_optional_uri, field="redirect_uri"),
    "scope": coerce_scope,
    "state": partial(coerce_optional_str, field="state"),
    "code": partial(coerce_optional_str, field="code"),
    "refresh_token": partial(coerce_optional_str, field="refresh_token"),
    "username": partial(coerce_optional_str, field="username"),
    "password": partial(coerce_optional_str, field="password"),
    "grant_type": coerce_grant_type,
    "extension_parameters": coerce_extension_parameters,
    "access_token": partial(coerce_optional_str, field="access_token"),
    "token_type": partial(coerce_optional_str, field="token_type"),
    "id_token": partial(coerce_optional_str, field="id_token"),
    "issued_at": coerce_issued_at,
    "expires_in": coerce_expires_in,
}


class Credential:
    """OAuth 2.0 client credential and token state.

    Absent values are None (an empty list for scope, an empty dict for
    extension parameters). The grant type is inferred from the grant inputs
    unless set explicitly.

    Example:
        >>> credential = Credential(client_id="s6BhdRkqt3", scope="email profile")
        >>> credential.scope
        ['email', 'profile']
    """

    def __init__(self, **options: Any):
        """Initialize the credential.

        Args:
            **options: Initial field values, any key of FIELD_COERCERS.
                ``authorization_uri``, ``token_endpoint_uri`` and ``id_token_raw`` are
                accepted as aliases.

        Raises:
            ConfigurationError: If an option name is unknown or a value is invalid
            InvalidTypeError: If a value has the wrong type
        """
        self._client_id: str | None = None
        self._client_secret: str | None = None
        self._authorization_endpoint_uri: str | None = None
        self._token_credential_uri: str | None = None
        self._redirect_uri: str | None = None
        self._scope: list[str] = []
        self._state: str | None = None
        self._code: str | None = None
        self._refresh_token: str | None = None
        self._username: str | None = None
        self._password: str | None = None
        self._grant_type: GrantType | ExtensionGrant | None = None
        self._extension_parameters = ExtensionParameters()
        self._access_token: str | None = None
        self._token_type: str | None = None
        self._id_token: str | None = None
        self._issued_at: datetime | None = None
        self._expires_in: int | None = None

        self.update(**options)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "Credential":
        """Create a credential from a configuration mapping."""
        return cls(**dict(options))

    def update(self, **options: Any) -> None:
        """Set several fields at once.

        Every value is validated before any field changes, so a failing
        option leaves the credential as it was.

        Raises:
            ConfigurationError: If an option name is unknown or a value is invalid
            InvalidTypeError: If a value has the wrong type
        """
        validated = {}
        for name, value in options.items():
            name = OPTION_ALIASES.get(name, name)
            coerce = FIELD_COERCERS.get(name)
            if coerce is None:
                raise ConfigurationError(f"Unknown credential option: {name}", field=name)
            validated[name] = coerce(value)

        for name, value in validated.items():
            setattr(self, f"_{name}", value)

    # Client identity

    @property
    def client_id(self) -> str | None:
        return self._client_id

    @client_id.setter
    def client_id(self, value: str | None) -> None:
        self._client_id = coerce_optional_str(value, "client_id")

    @property
    def client_secret(self) -> str | None:
        return self._client_secret

    @client_secret.setter
    def client_secret(self, value: str | None) -> None:
        self._client_secret = coerce_optional_str(value, "client_secret")

    # Endpoints

    @property
    def authorization_endpoint_uri(self) -> str | None:
        return self._authorization_endpoint_uri

    @authorization_endpoint_uri.setter
    def authorization_endpoint_uri(self, value: Any) -> None:
        self._authorization_endpoint_uri = coerce_optional_uri(value, "authorization_endpoint_uri")

    @property
    def token_credential_uri(self) -> str | None:
        return self._token_credential_uri

    @token_credential_uri.setter
    def token_credential_uri(self, value: Any) -> None:
        self._token_credential_uri = coerce_optional_uri(value, "token_credential_uri")

    @property
    def redirect_uri(self) -> str | None:
        return self._redirect_uri

    @redirect_uri.setter
    def redirect_uri(self, value: Any) -> None:
        self._redirect_uri = coerce_optional_uri(value, "redirect_uri")

    # Authorization request

    @property
    def scope(self) -> list[str]:
        """Requested scopes, in order. A copy is returned."""
        return list(self._scope)

    @scope.setter
    def scope(self, value: str | Sequence[str] | None) -> None:
        self._scope = coerce_scope(value)

    @property
    def state(self) -> str | None:
        return self._state

    @state.setter
    def state(self, value: str | None) -> None:
        self._state = coerce_optional_str(value, "state")

    # Grant inputs

    @property
    def code(self) -> str | None:
        return self._code

    @code.setter
    def code(self, value: str | None) -> None:
        self._code = coerce_optional_str(value, "code")

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    @refresh_token.setter
    def refresh_token(self, value: str | None) -> None:
        self._refresh_token = coerce_optional_str(value, "refresh_token")

    @property
    def username(self) -> str | None:
        return self._username

    @username.setter
    def username(self, value: str | None) -> None:
        self._username = coerce_optional_str(value, "username")

    @property
    def password(self) -> str | None:
        return self._password

    @password.setter
    def password(self, value: str | None) -> None:
        self._password = coerce_optional_str(value, "password")

    @property
    def grant_type(self) -> GrantType | ExtensionGrant | None:
        """Explicit grant type, or the one inferred from the grant inputs."""
        return resolve_grant_type(
            self._grant_type,
            code=self._code,
            redirect_uri=self._redirect_uri,
            refresh_token=self._refresh_token,
            username=self._username,
            password=self._password,
        )

    @grant_type.setter
    def grant_type(self, value: str | GrantType | ExtensionGrant | None) -> None:
        self._grant_type = coerce_grant_type(value)

    @property
    def extension_parameters(self) -> ExtensionParameters:
        """Parameters sent with an extension grant. Mutable in place."""
        return self._extension_parameters

    @extension_parameters.setter
    def extension_parameters(self, value: Mapping[str, Any] | None) -> None:
        self._extension_parameters = coerce_extension_parameters(value)

    # Tokens

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @access_token.setter
    def access_token(self, value: str | None) -> None:
        self._access_token = coerce_optional_str(value, "access_token")

    @property
    def token_type(self) -> str | None:
        return self._token_type

    @token_type.setter
    def token_type(self, value: str | None) -> None:
        self._token_type = coerce_optional_str(value, "token_type")

    @property
    def id_token(self) -> str | None:
        """Raw (encoded) ID token from the last token response."""
        return self._id_token

    @id_token.setter
    def id_token(self, value: str | None) -> None:
        self._id_token = coerce_optional_str(value, "id_token")

    @property
    def issued_at(self) -> datetime | None:
        return self._issued_at

    @issued_at.setter
    def issued_at(self, value: datetime | float | None) -> None:
        self._issued_at = coerce_issued_at(value)

    @property
    def expires_in(self) -> int | None:
        return self._expires_in

    @expires_in.setter
    def expires_in(self, value: int | str | None) -> None:
        self._expires_in = coerce_expires_in(value)

    # Expiry

    @property
    def expires_at(self) -> datetime | None:
        """When the access token expires, if both issued_at and expires_in are known."""
        if self._issued_at is None or self._expires_in is None:
            return None
        return self._issued_at + timedelta(seconds=self._expires_in)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the access token has expired.

        A token with unknown expiry (issued_at or expires_in missing) is
        never considered expired.
        """
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return _now(now) >= expires_at

    def expires_within(self, seconds: float, now: datetime | None = None) -> bool:
        """Check if the access token expires within the given number of seconds."""
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return _now(now) >= expires_at - timedelta(seconds=seconds)

    # Token updates

    def update_token(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
        expires_in: int | str | None = None,
        issued_at: datetime | float | None = None,
        id_token: str | None = None,
        token_type: str | None = None,
    ) -> None:
        """Replace the token fields in one step.

        All values are validated before any field changes. A missing
        refresh_token keeps the current one.

        Raises:
            InvalidTypeError: If a value has the wrong type
            ConfigurationError: If a value is out of range
        """
        self._apply_token(
            access_token=coerce_optional_str(access_token, "access_token"),
            refresh_token=coerce_optional_str(refresh_token, "refresh_token"),
            expires_in=coerce_expires_in(expires_in),
            issued_at=coerce_issued_at(issued_at),
            id_token=coerce_optional_str(id_token, "id_token"),
            token_type=coerce_optional_str(token_type, "token_type"),
        )

    def _apply_token(
        self,
        access_token: str | None,
        refresh_token: str | None,
        expires_in: int | None,
        issued_at: datetime | None,
        id_token: str | None,
        token_type: str | None,
    ) -> None:
        # Values are already validated; assignment cannot fail part way.
        self._access_token = access_token
        if refresh_token is not None:
            self._refresh_token = refresh_token
        self._expires_in = expires_in
        self._issued_at = issued_at
        self._id_token = id_token
        self._token_type = token_type

    def clear_credentials(self) -> None:
        """Forget every grant input and token, keeping client identity and endpoints."""
        self._code = None
        self._refresh_token = None
        self._username = None
        self._password = None
        self._access_token = None
        self._token_type = None
        self._id_token = None
        self._issued_at = None
        self._expires_in = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary. Includes secrets."""
        grant_type = self.grant_type
        return {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "authorization_endpoint_uri": self._authorization_endpoint_uri,
            "token_credential_uri": self._token_credential_uri,
            "redirect_uri": self._redirect_uri,
            "scope": list(self._scope),
            "state": self._state,
            "code": self._code,
            "refresh_token": self._refresh_token,
            "username": self._username,
            "password": self._password,
            "grant_type": str(grant_type) if grant_type is not None else None,
            "extension_parameters": dict(self._extension_parameters),
            "access_token": self._access_token,
            "token_type": self._token_type,
            "id_token": self._id_token,
            "issued_at": self._issued_at.isoformat() if self._issued_at else None,
            "expires_in": self._expires_in,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(client_id={self._client_id!r}, "
            f"grant_type={self.grant_type!s}, has_access_token={self._access_token is not None})"
        )


def _now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    return coerce_issued_at(now)

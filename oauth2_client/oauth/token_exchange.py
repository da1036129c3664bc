"""Token endpoint exchange.

This module builds the token request for the credential's grant type, sends
it through the injected transport and applies the parsed response to the
credential.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..transport import HttpRequest, HttpResponse, Transport, require_transport
from ..utils.errors import (
    AuthorizationError,
    ConfigurationError,
    InvalidTypeError,
    MissingFieldError,
    TokenResponseError,
)
from .credential import Credential, coerce_expires_in, coerce_issued_at
from .grants import ExtensionGrant, GrantType

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

FETCH_OPERATION = "fetch an access token"

# Token request fields extension parameters may not replace
PROTECTED_TOKEN_PARAMETERS = frozenset({"grant_type", "client_id", "client_secret"})


class TokenResponse(BaseModel):
    """Successful token endpoint response (RFC 6749 Section 5.1)."""

    model_config = ConfigDict(extra="allow")

    access_token: str = Field(..., min_length=1, description="Issued access token")
    token_type: str | None = Field(None, description="Token type, usually Bearer")
    refresh_token: str | None = Field(None, description="Refresh token, if issued")
    expires_in: int | None = Field(None, description="Access token lifetime in seconds")
    id_token: str | None = Field(None, description="Encoded OpenID Connect ID token")
    scope: str | None = Field(None, description="Granted scopes, space-delimited")
    issued_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the response was received"
    )

    @field_validator("expires_in", mode="before")
    @classmethod
    def validate_expires_in(cls, v: Any) -> int | None:
        """Accept expires_in sent as a numeric string."""
        try:
            return coerce_expires_in(v)
        except (ConfigurationError, InvalidTypeError) as e:
            raise ValueError(str(e)) from e

    @field_validator("issued_at", mode="after")
    @classmethod
    def validate_issued_at(cls, v: datetime) -> datetime:
        """Normalize to an aware UTC datetime."""
        return coerce_issued_at(v)

    @property
    def extra(self) -> dict[str, Any]:
        """Response members not modelled above."""
        return dict(self.model_extra or {})

    def apply_to(self, credential: Credential) -> Credential:
        """Update the credential's token fields from this response in one step."""
        credential._apply_token(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
            issued_at=self.issued_at,
            id_token=self.id_token,
            token_type=self.token_type,
        )
        return credential


def _require(credential: Credential, field: str) -> str:
    value = getattr(credential, field)
    if value is None:
        raise MissingFieldError(field, FETCH_OPERATION)
    return value


def build_token_request_body(credential: Credential) -> dict[str, str]:
    """Build the form fields for the token request.

    Preconditions are checked in order: token endpoint, client ID, client
    secret, grant type.

    Raises:
        MissingFieldError: If a required field is not set
        ConfigurationError: If no grant type can be determined
    """
    _require(credential, "token_credential_uri")
    client_id = _require(credential, "client_id")
    client_secret = _require(credential, "client_secret")

    grant_type = credential.grant_type
    if grant_type is None:
        raise ConfigurationError(
            "No grant type determinable: set code and redirect_uri, refresh_token, "
            "username and password, or an explicit grant_type",
            field="grant_type",
        )

    body: dict[str, str] = {"grant_type": str(grant_type)}

    if isinstance(grant_type, ExtensionGrant):
        for key, value in credential.extension_parameters.items():
            if key in PROTECTED_TOKEN_PARAMETERS:
                logger.debug(f"Ignoring extension parameter {key}: set by the client")
                continue
            body[key] = value
        body["client_id"] = client_id
        body["client_secret"] = client_secret
        return body

    if grant_type == GrantType.AUTHORIZATION_CODE:
        body["code"] = _require(credential, "code")
        body["redirect_uri"] = _require(credential, "redirect_uri")
    elif grant_type == GrantType.REFRESH_TOKEN:
        body["refresh_token"] = _require(credential, "refresh_token")
    elif grant_type == GrantType.PASSWORD:
        body["username"] = _require(credential, "username")
        body["password"] = _require(credential, "password")

    body["client_id"] = client_id
    body["client_secret"] = client_secret

    if grant_type == GrantType.PASSWORD and credential.scope:
        body["scope"] = " ".join(credential.scope)

    return body


def build_token_request(credential: Credential) -> HttpRequest:
    """Build the POST request for the token endpoint."""
    body = build_token_request_body(credential)
    return HttpRequest(
        method="POST",
        uri=credential.token_credential_uri,
        headers={"Content-Type": FORM_CONTENT_TYPE, "Accept": "application/json"},
        body=urlencode(body).encode("utf-8"),
    )


def parse_oauth_error(response: HttpResponse) -> tuple[str | None, str | None]:
    """Parse an OAuth error response (RFC 6749 Section 5.2).

    Returns:
        Tuple of (error, error_description); both None if the body is not an
        error document
    """
    try:
        error_data = response.json()
    except ValueError:
        return None, None
    if not isinstance(error_data, dict) or "error" not in error_data:
        return None, None
    return str(error_data["error"]), error_data.get("error_description")


def _token_endpoint_error(response: HttpResponse) -> AuthorizationError:
    error, error_description = parse_oauth_error(response)
    if response.status == 401:
        message = "Authorization failed at the token endpoint"
    elif response.status >= 500:
        message = f"Token endpoint unavailable (HTTP {response.status})"
    else:
        message = f"Unexpected token endpoint status (HTTP {response.status})"

    if error:
        message = f"{message}: {error}"
        if error_description:
            message = f"{message}: {error_description}"

    return AuthorizationError(
        message,
        status=response.status,
        body=response.text,
        error=error,
        error_description=error_description,
    )


def parse_token_response(response: HttpResponse, received_at: datetime | None = None) -> TokenResponse:
    """Parse a successful token endpoint response.

    JSON is expected; form-encoded bodies are accepted as well.

    Args:
        response: Response with status 200
        received_at: Default for issued_at (defaults to now)

    Raises:
        TokenResponseError: If the body cannot be parsed or lacks access_token
    """
    text = response.text
    content_type = response.content_type

    if content_type == FORM_CONTENT_TYPE:
        data: Any = dict(parse_qsl(text))
    else:
        try:
            data = response.json()
        except ValueError as e:
            if content_type != "text/plain":
                raise TokenResponseError("Token response is not valid JSON", body=text) from e
            data = dict(parse_qsl(text))

    if not isinstance(data, dict):
        raise TokenResponseError("Token response must be an object", body=text)

    data = dict(data)
    if data.get("issued_at") is None:
        data["issued_at"] = received_at or datetime.now(UTC)

    try:
        return TokenResponse.model_validate(data)
    except ValidationError as e:
        raise TokenResponseError(f"Invalid token response: {e}", body=text) from e


def request_token(credential: Credential, transport: Transport | None) -> TokenResponse:
    """Exchange the credential's grant for a token without updating the credential.

    Raises:
        ConfigurationError: If the request cannot be built or no transport is given
        AuthorizationError: If the token endpoint answers with any status but 200
        TokenResponseError: If a 200 response cannot be parsed
        TransportError: If the transport fails
    """
    request = build_token_request(credential)
    transport = require_transport(transport, FETCH_OPERATION)

    logger.debug(f"Requesting token from {request.uri} using {credential.grant_type} grant")
    response = transport.send(request)
    received_at = datetime.now(UTC)

    if response.status != 200:
        raise _token_endpoint_error(response)

    return parse_token_response(response, received_at)


def fetch_access_token(credential: Credential, transport: Transport | None) -> Credential:
    """Obtain a token for the credential's grant and apply it to the credential.

    The credential is left untouched if any step fails.

    Returns:
        The updated credential
    """
    grant_type = credential.grant_type
    token_response = request_token(credential, transport)
    token_response.apply_to(credential)
    logger.info(f"Obtained access token using {grant_type} grant")
    return credential

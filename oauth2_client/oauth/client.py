"""OAuth 2.0 client combining credential state with an injected transport."""

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import httpx

from ..transport import HttpRequest, HttpResponse, Transport
from ..utils.errors import MissingFieldError
from . import authenticated_request, token_exchange
from .credential import Credential
from .id_token import decode_id_token
from .uri_policy import build_authorization_uri

if TYPE_CHECKING:
    from ..core.config import Settings

logger = logging.getLogger(__name__)


class OAuth2Client(Credential):
    """OAuth 2.0 client.

    Holds the credential state and performs the client operations:
    building the authorization URI, fetching and refreshing tokens,
    stamping requests with the bearer token and decoding the ID token.

    The transport is never created implicitly. Give one to the constructor
    or to each network operation.

    Example:
        client = OAuth2Client(
            transport=HttpxTransport(),
            authorization_uri="https://accounts.example.com/o/oauth2/auth",
            token_credential_uri="https://accounts.example.com/o/oauth2/token",
            client_id="client-12345",
            client_secret="secret-12345",
            redirect_uri="https://app.example.com/callback",
            scope="email profile",
        )
        url = client.authorization_uri(access_type="offline")
        # ... user authorizes, callback receives ?code=...
        client.code = code
        client.fetch_access_token()
        response = client.fetch_protected_resource(uri="https://api.example.com/me")
    """

    def __init__(self, transport: Transport | None = None, **options: Any):
        """Initialize the client.

        Args:
            transport: Default transport for network operations
            **options: Credential fields (see Credential)
        """
        self.transport = transport
        super().__init__(**options)

    @classmethod
    def from_settings(cls, settings: "Settings", transport: Transport | None = None) -> "OAuth2Client":
        """Create a client from loaded settings."""
        return cls(transport=transport, **settings.client_options())

    def _transport(self, transport: Transport | None) -> Transport | None:
        return transport if transport is not None else self.transport

    def authorization_uri(self, **additional_parameters: Any) -> str:
        """Build the URI to send the resource owner to for authorization.

        Args:
            **additional_parameters: Extra query parameters such as access_type
                or prompt. Required parameters are never overridden.

        Raises:
            MissingFieldError: If the endpoint, client ID or redirect URI is missing
            UnsafeOperationError: If the authorization endpoint is not https
        """
        return build_authorization_uri(self, additional_parameters)

    def fetch_access_token(self, transport: Transport | None = None) -> "OAuth2Client":
        """Exchange the current grant for an access token and store it.

        Raises:
            ConfigurationError: If the token request cannot be built or no transport is set
            AuthorizationError: If the token endpoint rejects the request
            TokenResponseError: If the token response cannot be parsed
            TransportError: If the transport fails
        """
        token_exchange.fetch_access_token(self, self._transport(transport))
        return self

    def refresh(self, transport: Transport | None = None) -> "OAuth2Client":
        """Fetch a new access token. Same as fetch_access_token."""
        return self.fetch_access_token(transport)

    def generate_authenticated_request(
        self,
        request: HttpRequest | httpx.Request | Sequence[Any] | None = None,
        method: str = "GET",
        uri: str | httpx.URL | None = None,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        realm: str | None = None,
        transport: Transport | None = None,
    ) -> HttpRequest:
        """Return the request description with the bearer Authorization header added."""
        return authenticated_request.generate_authenticated_request(
            self,
            request,
            method=method,
            uri=uri,
            headers=headers,
            body=body,
            realm=realm,
            transport=self._transport(transport),
        )

    def fetch_protected_resource(
        self,
        request: HttpRequest | httpx.Request | Sequence[Any] | None = None,
        method: str = "GET",
        uri: str | httpx.URL | None = None,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        realm: str | None = None,
        transport: Transport | None = None,
    ) -> HttpResponse:
        """Send an authenticated request and return the response as received.

        Only a 401 is raised (AuthorizationError); other error statuses are
        returned for the caller to inspect.
        """
        return authenticated_request.fetch_protected_resource(
            self,
            self._transport(transport),
            request,
            method=method,
            uri=uri,
            headers=headers,
            body=body,
            realm=realm,
        )

    def decoded_id_token(
        self,
        key: Any = None,
        algorithms: list[str] | None = None,
        audience: str | list[str] | None = None,
        verify_expiration: bool = False,
    ) -> dict[str, Any]:
        """Decode the stored ID token, verifying its signature if a key is given.

        Raises:
            MissingFieldError: If no ID token has been received
            TokenVerificationError: If the signature does not match the key
            TokenDecodeError: If the token is malformed
        """
        if self.id_token is None:
            raise MissingFieldError("id_token", "decode the ID token")
        return decode_id_token(
            self.id_token,
            key,
            algorithms=algorithms,
            audience=audience,
            verify_expiration=verify_expiration,
        )

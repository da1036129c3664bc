"""Tests for URI validation and authorization URI construction."""

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from oauth2_client.oauth.client import OAuth2Client
from oauth2_client.oauth.uri_policy import is_secure_uri, parse_absolute_uri
from oauth2_client.utils.errors import (
    ConfigurationError,
    ErrorKind,
    InvalidTypeError,
    MissingFieldError,
    UnsafeOperationError,
)


def query_values(uri: str) -> dict[str, str]:
    """Parse a URI query into single values."""
    return {key: values[0] for key, values in parse_qs(urlsplit(uri).query).items()}


class TestParseAbsoluteUri:
    """Tests for parse_absolute_uri."""

    def test_https_uri(self) -> None:
        """Test that an absolute https URI is accepted unchanged."""
        assert parse_absolute_uri("https://example.com/cb", "redirect_uri") == "https://example.com/cb"

    def test_urn_is_absolute(self) -> None:
        """Test that URNs count as absolute URIs."""
        uri = "urn:ietf:wg:oauth:2.0:oob"
        assert parse_absolute_uri(uri, "redirect_uri") == uri

    def test_httpx_url(self) -> None:
        """Test that httpx.URL values are converted to strings."""
        assert parse_absolute_uri(httpx.URL("https://example.com/"), "x") == "https://example.com/"

    @pytest.mark.parametrize("value", ["/relative/path", "relative", "//example.com/path"])
    def test_relative_rejected(self, value: str) -> None:
        """Test that relative references raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            parse_absolute_uri(value, "redirect_uri")

    @pytest.mark.parametrize("value", [42, b"https://example.com", ["https://example.com"]])
    def test_non_uri_rejected(self, value: object) -> None:
        """Test that non-URI values raise InvalidTypeError."""
        with pytest.raises(InvalidTypeError):
            parse_absolute_uri(value, "redirect_uri")

    def test_is_secure_uri(self) -> None:
        """Test secure scheme detection."""
        assert is_secure_uri("https://example.com") is True
        assert is_secure_uri("HTTPS://example.com") is True
        assert is_secure_uri("http://example.com") is False


class TestAuthorizationUri:
    """Tests for building the authorization URI."""

    @pytest.fixture
    def client(self) -> OAuth2Client:
        """Create a client with everything needed for an authorization URI."""
        return OAuth2Client(
            authorization_uri="https://example.com/authorize",
            client_id="s6BhdRkqt3",
            redirect_uri="https://example.client.com/callback",
        )

    def test_authorization_uri(self, client: OAuth2Client) -> None:
        """Test that the query carries the client ID and redirect URI."""
        uri = client.authorization_uri()
        assert uri.startswith("https://example.com/authorize?")
        params = query_values(uri)
        assert params["response_type"] == "code"
        assert params["client_id"] == "s6BhdRkqt3"
        assert params["redirect_uri"] == "https://example.client.com/callback"
        assert "scope" not in params

    def test_authorization_uri_from_url_objects(self) -> None:
        """Test configuring the endpoint and redirect URI with httpx.URL."""
        client = OAuth2Client(client_id="s6BhdRkqt3")
        client.authorization_endpoint_uri = httpx.URL("https://example.com/authorize")
        client.redirect_uri = httpx.URL("https://example.client.com/callback")
        params = query_values(client.authorization_uri())
        assert params["client_id"] == "s6BhdRkqt3"
        assert params["redirect_uri"] == "https://example.client.com/callback"

    def test_scope_is_space_joined(self, client: OAuth2Client) -> None:
        """Test that scopes are sent as one space-delimited parameter."""
        client.scope = ["email", "profile"]
        assert query_values(client.authorization_uri())["scope"] == "email profile"

    def test_state_included(self, client: OAuth2Client) -> None:
        """Test that a configured state is sent."""
        client.state = "xyz"
        assert query_values(client.authorization_uri())["state"] == "xyz"

    def test_additional_parameters(self, client: OAuth2Client) -> None:
        """Test that extra parameters are added without clobbering required ones."""
        uri = client.authorization_uri(
            access_type="offline",
            client_id="attacker",
            redirect_uri="https://evil.example.com/",
            response_type="token",
        )
        params = query_values(uri)
        assert params["access_type"] == "offline"
        assert params["client_id"] == "s6BhdRkqt3"
        assert params["redirect_uri"] == "https://example.client.com/callback"
        assert params["response_type"] == "code"

    def test_existing_endpoint_query_kept(self, client: OAuth2Client) -> None:
        """Test that query parameters already on the endpoint are preserved."""
        client.authorization_endpoint_uri = "https://example.com/authorize?hd=example.com"
        params = query_values(client.authorization_uri())
        assert params["hd"] == "example.com"
        assert params["client_id"] == "s6BhdRkqt3"

    def test_requires_endpoint(self) -> None:
        """Test that a missing endpoint is reported."""
        client = OAuth2Client(client_id="s6BhdRkqt3", redirect_uri="https://example.client.com/cb")
        with pytest.raises(MissingFieldError) as exc_info:
            client.authorization_uri()
        assert exc_info.value.field == "authorization_endpoint_uri"

    def test_requires_redirect_uri(self) -> None:
        """Test that a missing redirect URI is reported."""
        client = OAuth2Client(authorization_uri="https://example.com/authorize", client_id="s6BhdRkqt3")
        with pytest.raises(ConfigurationError) as exc_info:
            client.authorization_uri()
        assert exc_info.value.field == "redirect_uri"

    def test_requires_client_id(self) -> None:
        """Test that a missing client ID is reported before the redirect URI."""
        client = OAuth2Client(authorization_uri="https://example.com/authorize")
        with pytest.raises(ConfigurationError) as exc_info:
            client.authorization_uri()
        assert exc_info.value.field == "client_id"
        assert exc_info.value.kind == ErrorKind.CONFIGURATION

    def test_insecure_endpoint_rejected(self, google_client: OAuth2Client) -> None:
        """Test that an http authorization endpoint raises UnsafeOperationError."""
        google_client.client_id = "client-12345"
        google_client.client_secret = "secret-12345"
        google_client.redirect_uri = "http://www.example.com/"
        google_client.authorization_endpoint_uri = "http://accounts.google.com/o/oauth2/auth"
        with pytest.raises(UnsafeOperationError) as exc_info:
            google_client.authorization_uri()
        assert exc_info.value.kind == ErrorKind.UNSAFE_OPERATION
        assert exc_info.value.uri == "http://accounts.google.com/o/oauth2/auth"

    def test_unsafe_is_not_configuration_error(self, google_client: OAuth2Client) -> None:
        """Test that the policy violation is distinct from a missing value."""
        google_client.client_id = "client-12345"
        google_client.redirect_uri = "https://www.example.com/"
        google_client.authorization_endpoint_uri = "http://accounts.google.com/o/oauth2/auth"
        with pytest.raises(UnsafeOperationError) as exc_info:
            google_client.authorization_uri()
        assert not isinstance(exc_info.value, ConfigurationError)

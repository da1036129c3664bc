"""Tests for the httpx-backed transport."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from oauth2_client.core.config import Settings
from oauth2_client.transport import HttpRequest, HttpResponse, HttpxTransport, require_transport
from oauth2_client.utils.errors import ConfigurationError, ErrorKind, TransportError


class TestHttpResponse:
    """Tests for the raw response helpers."""

    def test_content_type_strips_parameters(self) -> None:
        """Test that the media type is returned without charset."""
        response = HttpResponse(status=200, headers={"content-type": "Application/JSON; charset=utf-8"})
        assert response.content_type == "application/json"

    def test_text_uses_charset(self) -> None:
        """Test that the declared charset is used to decode the body."""
        response = HttpResponse(
            status=200,
            headers={"Content-Type": "text/plain; charset=latin-1"},
            body="café".encode("latin-1"),
        )
        assert response.text == "café"

    def test_json(self) -> None:
        """Test decoding a JSON body."""
        response = HttpResponse(status=200, body=b'{"a": 1}')
        assert response.json() == {"a": 1}

    def test_invalid_json(self) -> None:
        """Test that a non-JSON body raises ValueError."""
        with pytest.raises(ValueError):
            HttpResponse(status=200, body=b"not json").json()

    def test_header_lookup_ignores_case(self) -> None:
        """Test case-insensitive header access."""
        response = HttpResponse(status=200, headers={"WWW-Authenticate": 'Bearer realm="x"'})
        assert response.header("www-authenticate") == 'Bearer realm="x"'
        assert response.header("X-Missing") is None

    def test_decoded_body_with_content_encoding(self) -> None:
        """Test that a body already decoded by the transport is not decoded again."""
        response = HttpResponse(
            status=200,
            headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
            body=b'{"access_token": "12345"}',
        )
        assert response.json() == {"access_token": "12345"}

    def test_to_httpx(self) -> None:
        """Test conversion to an httpx.Response."""
        response = HttpResponse(status=509, headers={"Content-Type": "text/plain"}, body=b"busy")
        converted = response.to_httpx()
        assert converted.status_code == 509
        assert converted.text == "busy"


class TestHttpxTransport:
    """Tests for HttpxTransport."""

    @patch("httpx.Client.request")
    def test_send(self, mock_request: MagicMock) -> None:
        """Test that the request is forwarded and the response converted."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.headers = {"content-type": "application/json"}
        mock_response.content = b'{"access_token": "12345"}'
        mock_request.return_value = mock_response

        with HttpxTransport() as transport:
            response = transport.send(
                HttpRequest(
                    method="POST",
                    uri="https://accounts.google.com/o/oauth2/token",
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    body=b"grant_type=refresh_token",
                )
            )

        mock_request.assert_called_once_with(
            "POST",
            "https://accounts.google.com/o/oauth2/token",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            content=b"grant_type=refresh_token",
        )
        assert response.status == 200
        assert response.json() == {"access_token": "12345"}

    @patch("httpx.Client.request")
    def test_error_statuses_returned(self, mock_request: MagicMock) -> None:
        """Test that HTTP error statuses are returned, not raised."""
        mock_response = MagicMock()
        mock_response.status_code = 509
        mock_response.headers = {}
        mock_response.content = b"Rate limit hit or something."
        mock_request.return_value = mock_response

        with HttpxTransport() as transport:
            response = transport.send(HttpRequest(method="GET", uri="https://example.com/"))

        assert response.status == 509
        assert response.text == "Rate limit hit or something."

    @patch("httpx.Client.request")
    def test_connection_error(self, mock_request: MagicMock) -> None:
        """Test that httpx errors are wrapped in TransportError."""
        mock_request.side_effect = httpx.ConnectError("Connection refused")

        with HttpxTransport() as transport:
            with pytest.raises(TransportError) as exc_info:
                transport.send(HttpRequest(method="GET", uri="https://example.com/"))

        assert exc_info.value.kind == ErrorKind.TRANSPORT
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_base_url(self) -> None:
        """Test that the base URL is exposed only when configured."""
        with HttpxTransport(base_url="https://api.example.com/v1/") as transport:
            assert transport.base_url == "https://api.example.com/v1/"
        with HttpxTransport() as transport:
            assert transport.base_url is None

    def test_owned_client_closed(self) -> None:
        """Test that a client created by the transport is closed with it."""
        transport = HttpxTransport()
        transport.close()
        assert transport.client.is_closed

    def test_injected_client_left_open(self) -> None:
        """Test that a caller-supplied client is not closed."""
        client = httpx.Client()
        with HttpxTransport(client=client):
            pass
        assert not client.is_closed
        client.close()

    def test_from_settings(self) -> None:
        """Test that the configured timeout is applied."""
        settings = Settings(_env_file=None, request_timeout=5.0)
        with HttpxTransport.from_settings(settings) as transport:
            assert transport.client.timeout.read == 5.0


class TestRequireTransport:
    """Tests for require_transport."""

    def test_missing_transport(self) -> None:
        """Test that None raises ConfigurationError naming the operation."""
        with pytest.raises(ConfigurationError, match="fetch an access token") as exc_info:
            require_transport(None, "fetch an access token")
        assert exc_info.value.field == "transport"

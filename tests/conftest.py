"""Pytest configuration and fixtures for oauth2_client tests."""

import json
from collections.abc import Callable

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from oauth2_client.oauth.client import OAuth2Client
from oauth2_client.transport import HttpRequest, HttpResponse, Transport


class StubTransport(Transport):
    """Transport double that records requests and replies with a canned response."""

    def __init__(
        self,
        response: HttpResponse | Callable[[HttpRequest], HttpResponse] | None = None,
        base_url: str | None = None,
    ):
        self.response = response or HttpResponse(status=200)
        self._base_url = base_url
        self.requests: list[HttpRequest] = []

    @property
    def base_url(self) -> str | None:
        return self._base_url

    def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if callable(self.response):
            return self.response(request)
        return self.response

    @property
    def last_request(self) -> HttpRequest:
        assert self.requests, "no request was sent"
        return self.requests[-1]


def json_response(status: int, data: dict) -> HttpResponse:
    """Create a JSON HttpResponse."""
    return HttpResponse(
        status=status,
        headers={"Content-Type": "application/json"},
        body=json.dumps(data).encode("utf-8"),
    )


def text_response(status: int, text: str) -> HttpResponse:
    """Create a plain text HttpResponse."""
    return HttpResponse(
        status=status,
        headers={"Content-Type": "text/plain"},
        body=text.encode("utf-8"),
    )


TOKEN_PAYLOAD = {
    "access_token": "12345",
    "refresh_token": "54321",
    "expires_in": "3600",
}


@pytest.fixture
def token_transport() -> StubTransport:
    """Transport answering every request with a successful token response."""
    return StubTransport(json_response(200, TOKEN_PAYLOAD))


@pytest.fixture
def google_client() -> OAuth2Client:
    """Create a client configured for the Google userinfo API."""
    return OAuth2Client(
        authorization_uri="https://accounts.google.com/o/oauth2/auth",
        token_credential_uri="https://accounts.google.com/o/oauth2/token",
        scope="https://www.googleapis.com/auth/userinfo.profile",
    )


@pytest.fixture
def ready_client(google_client: OAuth2Client) -> OAuth2Client:
    """Create a client with client credentials and an access token."""
    google_client.client_id = "client-12345"
    google_client.client_secret = "secret-12345"
    google_client.access_token = "12345"
    return google_client


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Generate an RSA private key for signing test ID tokens."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_public_pem(rsa_private_key: rsa.RSAPrivateKey) -> bytes:
    """PEM-encoded public key matching rsa_private_key."""
    return rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture(scope="session")
def other_public_pem() -> bytes:
    """PEM-encoded public key that did not sign anything."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

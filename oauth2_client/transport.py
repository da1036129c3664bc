"""HTTP transport seam for the OAuth 2.0 client core.

The core never opens connections itself. Every network call goes through a
``Transport`` supplied by the caller; ``HttpxTransport`` adapts an
``httpx.Client`` to that interface.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from .utils.errors import ConfigurationError, TransportError

if TYPE_CHECKING:
    from .core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class HttpRequest:
    """Explicit description of an outbound HTTP request."""

    method: str
    uri: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def header(self, name: str) -> str | None:
        """Get a header value, ignoring case."""
        return httpx.Headers(self.headers).get(name)


@dataclass
class HttpResponse:
    """Raw response returned by a transport."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Get a header value, ignoring case."""
        return httpx.Headers(self.headers).get(name)

    def to_httpx(self) -> httpx.Response:
        """Wrap the raw response in an httpx.Response for decoding."""
        # body is already content-decoded by the transport
        headers = httpx.Headers(self.headers)
        headers.pop("Content-Encoding", None)
        return httpx.Response(self.status, headers=headers, content=self.body)

    @property
    def content_type(self) -> str | None:
        """Media type without parameters, lowercased."""
        value = self.header("Content-Type")
        if not value:
            return None
        return value.partition(";")[0].strip().lower()

    @property
    def text(self) -> str:
        """Body decoded using the declared charset (UTF-8 by default)."""
        return self.to_httpx().text

    def json(self) -> Any:
        """Decode the body as JSON."""
        return self.to_httpx().json()


class Transport(ABC):
    """Blocking HTTP transport used by the client core.

    Implementations perform exactly one request per ``send`` call and must
    not retry on their own.
    """

    @property
    def base_url(self) -> str | None:
        """Base URL that relative request URIs are resolved against, if any."""
        return None

    @abstractmethod
    def send(self, request: HttpRequest) -> HttpResponse:
        """Send a request and return the raw response.

        Raises:
            TransportError: If no response could be obtained
        """
        pass


def require_transport(transport: Transport | None, operation: str) -> Transport:
    """Return the transport, or raise if none was injected.

    Raises:
        ConfigurationError: If transport is None
    """
    if transport is None:
        raise ConfigurationError(
            f"A transport is required to {operation}; pass one explicitly", field="transport"
        )
    return transport


class HttpxTransport(Transport):
    """Transport backed by a synchronous ``httpx.Client``."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the transport.

        Args:
            client: Existing client to use. It is not closed by this transport.
            base_url: Base URL for a newly created client
            timeout: Request timeout in seconds for a newly created client
        """
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(base_url=base_url or "", timeout=timeout)
        self.client = client

    @classmethod
    def from_settings(cls, settings: "Settings", base_url: str | None = None) -> "HttpxTransport":
        """Create a transport using the configured request timeout."""
        return cls(base_url=base_url, timeout=settings.request_timeout)

    @property
    def base_url(self) -> str | None:
        base = str(self.client.base_url)
        return base or None

    def send(self, request: HttpRequest) -> HttpResponse:
        try:
            response = self.client.request(
                request.method,
                request.uri,
                headers=request.headers,
                content=request.body,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.uri} failed: {e}") from e

        logger.debug(f"{request.method} {request.uri} -> {response.status_code}")
        return HttpResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

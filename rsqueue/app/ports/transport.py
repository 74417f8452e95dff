"""Transport port: contract for one request/response exchange with the queue service.

Application code depends on this port; infrastructure (e.g. httpx) implements it.
A completed exchange is returned as-is whatever its status code; callers decide
whether a non-2xx status is an error (typed operations) or a plain outcome
(boolean operations). Failures to complete the exchange are always raised.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


class QueueTransportError(Exception):
    """Base for transport failures (network, protocol, status, payload shape)."""


class QueueTransportTimeoutError(QueueTransportError):
    """Raised when the exchange times out."""


class QueueStatusError(QueueTransportError):
    """Raised when the service answered with a non-success status."""

    def __init__(self, method: str, url: str, status_code: int, body: str = "") -> None:
        super().__init__(f"http status {status_code} for {method} {url}")
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body


class MalformedResponseError(QueueTransportError):
    """Raised when a successful response body does not match the expected shape."""


@runtime_checkable
class TransportResponse(Protocol):
    """Minimal read-only view of a completed exchange."""

    @property
    def status_code(self) -> int: ...

    @property
    def is_success(self) -> bool: ...

    @property
    def text(self) -> str: ...

    @property
    def url(self) -> str: ...

    def json(self) -> Any: ...

    def raise_for_status(self) -> None: ...


@dataclass(frozen=True)
class RequestTimeout:
    """Connect and read timeouts in seconds for a single call."""

    connect_seconds: float
    read_seconds: float


@dataclass(frozen=True)
class BasicCredentials:
    username: str
    password: str


@runtime_checkable
class QueueTransport(Protocol):
    """Port: perform exchanges against the queue service. Implementations live in infrastructure."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        timeout: RequestTimeout | None = None,
    ) -> TransportResponse:
        """Perform one exchange; raise QueueTransportTimeoutError or QueueTransportError if it cannot complete."""
        ...

    async def close(self) -> None:
        """Release resources (e.g. connection pool). No-op allowed if nothing to close."""
        ...

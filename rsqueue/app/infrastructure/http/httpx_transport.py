"""Concrete transport implementation using httpx (injected where QueueTransport is needed)."""
from __future__ import annotations

from typing import Any

import httpx

from rsqueue.app.ports.transport import (
    MalformedResponseError,
    QueueStatusError,
    QueueTransport,
    QueueTransportError,
    QueueTransportTimeoutError,
    RequestTimeout,
    TransportResponse,
)


class _HttpxResponseAdapter:
    """Adapts httpx.Response to the TransportResponse protocol."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def is_success(self) -> bool:
        return self._response.is_success

    @property
    def text(self) -> str:
        return self._response.text

    @property
    def url(self) -> str:
        return str(self._response.url)

    def json(self) -> Any:
        try:
            return self._response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"invalid json from {self.url}: {exc}") from exc

    def raise_for_status(self) -> None:
        try:
            self._response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise QueueStatusError(
                exc.request.method,
                str(exc.request.url),
                exc.response.status_code,
                exc.response.text,
            ) from exc


def _to_httpx_timeout(timeout: RequestTimeout) -> httpx.Timeout:
    return httpx.Timeout(
        connect=timeout.connect_seconds,
        read=timeout.read_seconds,
        write=timeout.read_seconds,
        pool=timeout.connect_seconds,
    )


class HttpxTransport(QueueTransport):
    """QueueTransport implementation using httpx.AsyncClient.

    Base URL, credentials and default headers belong to the injected client and
    are the same for every call; only the per-call timeout varies.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        timeout: RequestTimeout | None = None,
    ) -> TransportResponse:
        httpx_timeout: Any = httpx.USE_CLIENT_DEFAULT
        if timeout is not None:
            httpx_timeout = _to_httpx_timeout(timeout)
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                timeout=httpx_timeout,
            )
            return _HttpxResponseAdapter(response)
        except httpx.TimeoutException as exc:
            raise QueueTransportTimeoutError(f"timeout during {method} {path}") from exc
        except httpx.HTTPError as exc:
            raise QueueTransportError(f"{method} {path} failed: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()

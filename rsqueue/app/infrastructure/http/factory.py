"""Transport factory: builds QueueTransport from settings (no provider logic in composition)."""
from __future__ import annotations

import httpx

from rsqueue.app.config.settings import Settings
from rsqueue.app.constants import JSON_MEDIA_TYPE
from rsqueue.app.infrastructure.http.httpx_transport import HttpxTransport
from rsqueue.app.ports.transport import BasicCredentials, QueueTransport


def build_httpx_client(
    base_url: str,
    *,
    credentials: BasicCredentials | None = None,
    connect_timeout_seconds: float | None = None,
    read_timeout_seconds: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the shared AsyncClient. With no timeouts given the client never times out on its own."""
    timeout = httpx.Timeout(
        connect=connect_timeout_seconds,
        read=read_timeout_seconds,
        write=read_timeout_seconds,
        pool=connect_timeout_seconds,
    )
    auth = None
    if credentials is not None and credentials.username and credentials.password:
        auth = httpx.BasicAuth(credentials.username, credentials.password)
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        auth=auth,
        headers={"Accept": JSON_MEDIA_TYPE},
        timeout=timeout,
        transport=transport,
    )


def create_transport(settings: Settings) -> QueueTransport:
    backend = settings.transport_backend.strip().lower()

    if backend == "httpx":
        credentials = None
        if settings.has_credentials:
            credentials = BasicCredentials(settings.username, settings.password)
        client = build_httpx_client(
            settings.base_url,
            credentials=credentials,
            connect_timeout_seconds=settings.connect_timeout_seconds,
            read_timeout_seconds=settings.read_timeout_seconds,
        )
        return HttpxTransport(client)

    raise ValueError(f"Unsupported transport backend: {backend}")

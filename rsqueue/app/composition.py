"""Composition root: build and lifecycle-manage the client's concrete dependencies.

Composition may: import concrete classes, call factories, store interface types,
manage high-level lifecycle.
"""
from __future__ import annotations

from typing import Any

from loguru import logger

from rsqueue.app.application.batch_consumer import BatchConsumer
from rsqueue.app.application.queue_client import QueueClient
from rsqueue.app.config.settings import Settings
from rsqueue.app.core import SERVICE_NAME
from rsqueue.app.infrastructure.http.factory import create_transport
from rsqueue.app.ports.transport import QueueTransport


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class ClientDependencies:
    """Holds the wired transport, client and consumer and their lifecycle."""

    def __init__(self, *, settings: Settings) -> None:
        self._settings = settings
        self._transport: QueueTransport | None = None
        self._client: QueueClient | None = None
        self._consumer: BatchConsumer | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def client(self) -> QueueClient:
        if self._client is None:
            raise RuntimeError("client is not initialized")
        return self._client

    @property
    def consumer(self) -> BatchConsumer:
        if self._consumer is None:
            raise RuntimeError("consumer is not initialized")
        return self._consumer

    async def connect(self) -> None:
        self._transport = create_transport(self._settings)
        self._client = QueueClient(self._transport)
        self._consumer = BatchConsumer(self._client)
        _log("client_ready", base_url=self._settings.base_url, authenticated=self._settings.has_credentials)

    async def close(self) -> None:
        if self._transport is not None:
            try:
                await self._transport.close()
            except Exception as exc:
                logger.warning("transport close failed: {}", exc)
            self._transport = None
        self._client = None
        self._consumer = None

    async def __aenter__(self) -> "ClientDependencies":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


def create_client_dependencies(settings: Settings | None = None) -> ClientDependencies:
    return ClientDependencies(settings=settings or Settings())

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from rsqueue.app.application.queue_client import QueueClient
from rsqueue.app.domain.models import Message
from rsqueue.app.infrastructure.http.factory import build_httpx_client
from rsqueue.app.infrastructure.http.httpx_transport import HttpxTransport
from rsqueue.app.ports.transport import BasicCredentials, RequestTimeout
from tests.fake_service import FakeQueueService, ManualClock

FIXED_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_message(
    content: str,
    *,
    leased: bool = True,
    visible_after: datetime | None = None,
) -> Message:
    """Build a Message as the service would return it from a dequeue."""
    data: dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "content": content,
        "content_hash": f"hash-{content}",
        "created_at": FIXED_NOW.isoformat(),
    }
    if leased:
        data["receipt_handle"] = str(uuid.uuid4())
        data["visible_after"] = (visible_after or FIXED_NOW + timedelta(seconds=120)).isoformat()
    return Message.model_validate(data)


class FakeQueueClient:
    """Implements the dequeue/delete_message surface BatchConsumer uses; records every call."""

    def __init__(
        self,
        messages: list[Message] | None = None,
        *,
        raise_on_dequeue: Exception | None = None,
        delete_results: dict[uuid.UUID, bool | Exception] | None = None,
    ) -> None:
        self.messages = list(messages or [])
        self.dequeue_calls: list[tuple[str, int, RequestTimeout | None]] = []
        self.deleted: list[tuple[str, uuid.UUID]] = []
        self._raise_on_dequeue = raise_on_dequeue
        self._delete_results = delete_results or {}

    async def dequeue(self, queue_name: str, count: int = 1, *, timeout: RequestTimeout | None = None) -> list[Message]:
        self.dequeue_calls.append((queue_name, count, timeout))
        if self._raise_on_dequeue is not None:
            raise self._raise_on_dequeue
        return self.messages[:count]

    async def delete_message(
        self,
        queue_name: str,
        receipt_handle: uuid.UUID,
        *,
        timeout: RequestTimeout | None = None,
    ) -> bool:
        self.deleted.append((queue_name, receipt_handle))
        outcome = self._delete_results.get(receipt_handle, True)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(FIXED_NOW)


@pytest.fixture()
def fake_service(clock: ManualClock) -> FakeQueueService:
    return FakeQueueService(clock)


def build_transport(service: FakeQueueService, credentials: BasicCredentials | None = None) -> HttpxTransport:
    http_client = build_httpx_client(
        "http://rsqueue.test",
        credentials=credentials,
        transport=httpx.ASGITransport(app=service.app),
    )
    return HttpxTransport(http_client)


@pytest.fixture()
async def client(fake_service: FakeQueueService):
    """QueueClient wired to the in-process fake service; transport closed after the test."""
    transport = build_transport(fake_service)
    yield QueueClient(transport)
    await transport.close()

"""Queue client facade: one coroutine per queue or message action.

The client holds nothing but its transport, so every call is an independent
request/response exchange that the caller may retry, cancel or run concurrently
with others. No call is retried here.

Two result styles are used, following what the service reports:
  - boolean operations (queue delete, settings update, purge, message delete)
    return whether the exchange completed with a 2xx status;
  - typed operations raise QueueStatusError on a non-2xx status and
    MalformedResponseError when the body does not parse.
Application-level rejections (a duplicate enqueue) are never raised; they come
back in the response's `error` field.
"""
from __future__ import annotations

from typing import Any, Iterable, TypeVar
from urllib.parse import quote
from uuid import UUID

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from rsqueue.app.application.batch_consumer import BatchConsumer, BatchResult
from rsqueue.app.constants import HttpMethod, Paths
from rsqueue.app.core import SERVICE_NAME
from rsqueue.app.domain.models import (
    BatchEnqueueRequest,
    BatchEnqueueResponse,
    CreateQueueRequest,
    EnqueueRequest,
    EnqueueResponse,
    GetMessagesRequest,
    HealthStatus,
    Message,
    MessagePreview,
    MetricsSummary,
    PeekMessagesRequest,
    QueueDetailInfo,
    QueueInfo,
    QueueMetrics,
    UpdateQueueRequest,
)
from rsqueue.app.ports.message_processor import MessageProcessor
from rsqueue.app.ports.transport import (
    MalformedResponseError,
    QueueTransport,
    RequestTimeout,
    TransportResponse,
)

T = TypeVar("T")

_QUEUE_LIST = TypeAdapter(list[QueueInfo])
_MESSAGE_LIST = TypeAdapter(list[Message])
_PREVIEW_LIST = TypeAdapter(list[MessagePreview])
_QUEUE = TypeAdapter(QueueInfo)
_QUEUE_DETAILS = TypeAdapter(QueueDetailInfo)
_QUEUE_METRICS = TypeAdapter(QueueMetrics)
_ENQUEUE = TypeAdapter(EnqueueResponse)
_BATCH_ENQUEUE = TypeAdapter(BatchEnqueueResponse)
_HEALTH = TypeAdapter(HealthStatus)
_METRICS_SUMMARY = TypeAdapter(MetricsSummary)


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _warn(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


def _escape(queue_name: str) -> str:
    return quote(queue_name, safe="")


def _parse(adapter: TypeAdapter[T], response: TransportResponse) -> T:
    response.raise_for_status()
    try:
        return adapter.validate_python(response.json())
    except ValidationError as exc:
        raise MalformedResponseError(f"unexpected response shape from {response.url}: {exc}") from exc


class QueueClient:
    """Stateless facade over a QueueTransport."""

    def __init__(self, transport: QueueTransport) -> None:
        self._transport = transport

    async def _exchange(
        self,
        method: str,
        path: str,
        *,
        body: BaseModel | dict[str, Any] | None = None,
        timeout: RequestTimeout | None = None,
    ) -> TransportResponse:
        payload: Any = body
        if isinstance(body, BaseModel):
            payload = body.model_dump(mode="json")
        return await self._transport.request(method, path, json=payload, timeout=timeout)

    def _succeeded(self, event: str, response: TransportResponse, **kwargs: Any) -> bool:
        if response.is_success:
            return True
        _warn(event, status_code=response.status_code, url=response.url, body=response.text, **kwargs)
        return False

    # Health & monitoring

    async def get_health(self, *, timeout: RequestTimeout | None = None) -> HealthStatus:
        response = await self._exchange(HttpMethod.GET, Paths.HEALTH, timeout=timeout)
        return _parse(_HEALTH, response)

    async def get_metrics(self, *, timeout: RequestTimeout | None = None) -> str:
        """Raw Prometheus exposition text."""
        response = await self._exchange(HttpMethod.GET, Paths.METRICS, timeout=timeout)
        response.raise_for_status()
        return response.text

    async def get_metrics_summary(self, *, timeout: RequestTimeout | None = None) -> MetricsSummary:
        response = await self._exchange(HttpMethod.GET, Paths.METRICS_SUMMARY, timeout=timeout)
        return _parse(_METRICS_SUMMARY, response)

    async def get_queue_metrics(self, queue_name: str, *, timeout: RequestTimeout | None = None) -> QueueMetrics:
        path = Paths.QUEUE_METRICS.format(name=_escape(queue_name))
        response = await self._exchange(HttpMethod.GET, path, timeout=timeout)
        return _parse(_QUEUE_METRICS, response)

    # Queue management

    async def create_queue(
        self,
        queue: str | CreateQueueRequest,
        *,
        timeout: RequestTimeout | None = None,
    ) -> QueueInfo:
        """Create a queue; a bare name gets the default settings. An existing name raises QueueStatusError."""
        request = queue if isinstance(queue, CreateQueueRequest) else CreateQueueRequest(name=queue)
        response = await self._exchange(HttpMethod.POST, Paths.QUEUES, body=request, timeout=timeout)
        info = _parse(_QUEUE, response)
        _log("queue_created", queue=info.name)
        return info

    async def list_queues(self, *, timeout: RequestTimeout | None = None) -> list[QueueInfo]:
        response = await self._exchange(HttpMethod.GET, Paths.QUEUES, timeout=timeout)
        return _parse(_QUEUE_LIST, response)

    async def delete_queue(self, queue_name: str, *, timeout: RequestTimeout | None = None) -> bool:
        path = Paths.QUEUE.format(name=_escape(queue_name))
        response = await self._exchange(HttpMethod.DELETE, path, timeout=timeout)
        return self._succeeded("queue_delete_failed", response, queue=queue_name)

    async def update_queue_settings(
        self,
        queue_name: str,
        request: UpdateQueueRequest,
        *,
        timeout: RequestTimeout | None = None,
    ) -> bool:
        """Send only the fields set on `request`; the rest keep their current server value."""
        path = Paths.QUEUE_SETTINGS.format(name=_escape(queue_name))
        response = await self._exchange(HttpMethod.PUT, path, body=request.to_payload(), timeout=timeout)
        return self._succeeded("queue_settings_update_failed", response, queue=queue_name)

    async def purge_queue(self, queue_name: str, *, timeout: RequestTimeout | None = None) -> bool:
        path = Paths.QUEUE_PURGE.format(name=_escape(queue_name))
        response = await self._exchange(HttpMethod.POST, path, timeout=timeout)
        return self._succeeded("queue_purge_failed", response, queue=queue_name)

    async def get_queue_details(self, queue_name: str, *, timeout: RequestTimeout | None = None) -> QueueDetailInfo:
        path = Paths.QUEUE_DETAILS.format(name=_escape(queue_name))
        response = await self._exchange(HttpMethod.GET, path, timeout=timeout)
        return _parse(_QUEUE_DETAILS, response)

    # Message operations

    async def enqueue(
        self,
        queue_name: str,
        content: str,
        *,
        timeout: RequestTimeout | None = None,
    ) -> EnqueueResponse:
        path = Paths.MESSAGES.format(name=_escape(queue_name))
        response = await self._exchange(
            HttpMethod.POST, path, body=EnqueueRequest(content=content), timeout=timeout
        )
        result = _parse(_ENQUEUE, response)
        if not result.accepted:
            _log("enqueue_rejected", queue=queue_name, reason=result.error)
        return result

    async def enqueue_batch(
        self,
        queue_name: str,
        contents: Iterable[str],
        *,
        timeout: RequestTimeout | None = None,
    ) -> BatchEnqueueResponse:
        """Enqueue items independently; partial success is a normal result, not an error."""
        path = Paths.MESSAGES_BATCH.format(name=_escape(queue_name))
        request = BatchEnqueueRequest(messages=list(contents))
        response = await self._exchange(HttpMethod.POST, path, body=request, timeout=timeout)
        result = _parse(_BATCH_ENQUEUE, response)
        if result.failed:
            _log("enqueue_batch_partial", queue=queue_name, successful=result.successful, failed=result.failed)
        return result

    async def dequeue(
        self,
        queue_name: str,
        count: int = 1,
        *,
        timeout: RequestTimeout | None = None,
    ) -> list[Message]:
        """Lease up to `count` visible messages; an empty list means nothing is visible right now."""
        path = Paths.MESSAGES_GET.format(name=_escape(queue_name))
        request = GetMessagesRequest(count=count)
        response = await self._exchange(HttpMethod.POST, path, body=request, timeout=timeout)
        return _parse(_MESSAGE_LIST, response)

    async def peek(
        self,
        queue_name: str,
        count: int = 1,
        offset: int = 0,
        *,
        timeout: RequestTimeout | None = None,
    ) -> list[MessagePreview]:
        """Inspect messages from `offset` without changing any lease."""
        path = Paths.MESSAGES_PEEK.format(name=_escape(queue_name))
        request = PeekMessagesRequest(count=count, offset=offset)
        response = await self._exchange(HttpMethod.POST, path, body=request, timeout=timeout)
        return _parse(_PREVIEW_LIST, response)

    async def list_all_messages(
        self,
        queue_name: str,
        *,
        timeout: RequestTimeout | None = None,
    ) -> list[MessagePreview]:
        path = Paths.MESSAGES_ALL.format(name=_escape(queue_name))
        response = await self._exchange(HttpMethod.GET, path, timeout=timeout)
        return _parse(_PREVIEW_LIST, response)

    async def delete_message(
        self,
        queue_name: str,
        receipt_handle: UUID | str,
        *,
        timeout: RequestTimeout | None = None,
    ) -> bool:
        """Delete the message leased under `receipt_handle`.

        False when the handle is unknown, already used, or its lease expired.
        """
        if isinstance(receipt_handle, UUID):
            handle = receipt_handle
        else:
            try:
                handle = UUID(str(receipt_handle))
            except ValueError:
                _warn(
                    "message_delete_failed",
                    queue=queue_name,
                    receipt_handle=str(receipt_handle),
                    reason="malformed receipt handle",
                )
                return False
        path = Paths.MESSAGE.format(name=_escape(queue_name), receipt_handle=handle)
        response = await self._exchange(HttpMethod.DELETE, path, timeout=timeout)
        return self._succeeded(
            "message_delete_failed", response, queue=queue_name, receipt_handle=str(handle)
        )

    # Helpers

    async def process_messages(
        self,
        queue_name: str,
        processor: MessageProcessor,
        batch_size: int = 1,
        *,
        timeout: RequestTimeout | None = None,
    ) -> BatchResult:
        """Run one batch consumption pass; see BatchConsumer.process_batch."""
        return await BatchConsumer(self).process_batch(
            queue_name, processor, batch_size=batch_size, timeout=timeout
        )

"""Batch consumption: lease a batch, process each message, delete the ones that succeeded.

One call to `process_batch` is a single pass:

  Fetch -> Process(each) -> Conditional-Delete(each) -> Done

Messages are processed one at a time in the order the service returned them.
A message is deleted only when its processor returned exactly True and it carries a
receipt handle. A False result, a processor exception, or a failed delete
leaves the message alone: its lease lapses at `visible_after` and the service
redelivers it. One message's failure never stops the rest of the batch.

Nothing here retries. A failed fetch is raised to the caller; retry policy
belongs to whoever drives the loop (see rsqueue.app.main).
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from rsqueue.app.core import SERVICE_NAME
from rsqueue.app.domain.lease import Lease, utc_now
from rsqueue.app.domain.models import Message
from rsqueue.app.ports.message_processor import MessageProcessor
from rsqueue.app.ports.transport import QueueTransportError, RequestTimeout

if TYPE_CHECKING:
    from rsqueue.app.application.queue_client import QueueClient


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@dataclass(frozen=True)
class BatchResult:
    """Counts for one pass. fetched == deleted + kept + failed + delete_failed."""

    fetched: int = 0
    deleted: int = 0
    kept: int = 0
    failed: int = 0
    delete_failed: int = 0

    @property
    def empty(self) -> bool:
        return self.fetched == 0


class BatchConsumer:
    """Runs batch consumption passes against a QueueClient."""

    def __init__(
        self,
        client: QueueClient,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client = client
        self._clock = clock

    async def process_batch(
        self,
        queue_name: str,
        processor: MessageProcessor,
        batch_size: int = 1,
        *,
        timeout: RequestTimeout | None = None,
    ) -> BatchResult:
        messages = await self._client.dequeue(queue_name, batch_size, timeout=timeout)
        if not messages:
            return BatchResult()

        _log("batch_fetched", queue=queue_name, requested=batch_size, fetched=len(messages))
        deleted = kept = failed = delete_failed = 0

        for message in messages:
            try:
                should_delete = await self._run_processor(processor, message)
            except Exception as exc:
                failed += 1
                logger.bind(
                    service_name=SERVICE_NAME,
                    event="message_processing_failed",
                    queue=queue_name,
                    message_id=str(message.id),
                ).exception("message processing failed: {}", exc)
                continue

            lease = message.lease
            if not should_delete or lease is None:
                kept += 1
                _log("message_kept", queue=queue_name, message_id=str(message.id))
                continue

            if await self._delete(queue_name, message, lease, timeout):
                deleted += 1
            else:
                delete_failed += 1

        result = BatchResult(
            fetched=len(messages),
            deleted=deleted,
            kept=kept,
            failed=failed,
            delete_failed=delete_failed,
        )
        _log(
            "batch_completed",
            queue=queue_name,
            fetched=result.fetched,
            deleted=result.deleted,
            kept=result.kept,
            failed=result.failed,
            delete_failed=result.delete_failed,
        )
        return result

    async def _run_processor(self, processor: MessageProcessor, message: Message) -> bool:
        outcome = processor(message)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome is True

    async def _delete(
        self,
        queue_name: str,
        message: Message,
        lease: Lease,
        timeout: RequestTimeout | None,
    ) -> bool:
        if lease.expired(self._clock()):
            # The service decides; the handle is most likely stale by now.
            _log(
                "lease_expired_before_delete",
                queue=queue_name,
                message_id=str(message.id),
                visible_after=lease.visible_after.isoformat(),
            )
        try:
            ok = await self._client.delete_message(queue_name, lease.receipt_handle, timeout=timeout)
        except QueueTransportError as exc:
            logger.warning("message delete failed for {}: {}", message.id, exc)
            return False
        if ok:
            _log("message_deleted", queue=queue_name, message_id=str(message.id))
        return ok

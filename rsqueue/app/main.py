"""Long-running consumer: repeat batch passes over one queue until SIGINT/SIGTERM.

This is the caller-level policy layered on top of BatchConsumer: it waits
CONSUMER_IDLE_POLL_SECONDS after an empty batch and backs off exponentially
after transport failures, resetting once a fetch succeeds again.
"""
import asyncio
import importlib
import signal
from typing import Any

from loguru import logger

from rsqueue.app.composition import ClientDependencies, create_client_dependencies
from rsqueue.app.config.settings import Settings
from rsqueue.app.core import SERVICE_NAME
from rsqueue.app.core.backoff import Backoff
from rsqueue.app.domain.models import Message
from rsqueue.app.ports.message_processor import MessageProcessor
from rsqueue.app.ports.transport import QueueTransportError


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def log_and_ack(message: Message) -> bool:
    """Default processor: log the message and have it deleted."""
    _log("message_received", message_id=str(message.id), content_hash=message.content_hash)
    return True


def load_processor(path: str) -> MessageProcessor:
    """Resolve a `package.module:function` reference; empty means log_and_ack."""
    if not path:
        return log_and_ack
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"processor must look like 'module:function', got {path!r}")
    processor = getattr(importlib.import_module(module_name), attr)
    if not callable(processor):
        raise TypeError(f"processor {path!r} is not callable")
    return processor


async def _sleep_or_shutdown(shutdown: asyncio.Event, seconds: float) -> None:
    if seconds <= 0:
        return
    try:
        await asyncio.wait_for(shutdown.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


async def consume_until_shutdown(
    deps: ClientDependencies,
    processor: MessageProcessor,
    shutdown: asyncio.Event,
) -> None:
    settings = deps.settings
    backoff = Backoff(
        settings.initial_backoff_seconds,
        settings.max_backoff_seconds,
        settings.backoff_multiplier,
    )
    while not shutdown.is_set():
        try:
            result = await deps.consumer.process_batch(
                settings.queue_name,
                processor,
                batch_size=settings.batch_size,
            )
        except QueueTransportError as exc:
            delay = backoff.next_delay()
            logger.warning("batch fetch failed (attempt {}, retry in {}s): {}", backoff.failures, delay, exc)
            await _sleep_or_shutdown(shutdown, delay)
            continue

        backoff.reset()
        if result.empty:
            await _sleep_or_shutdown(shutdown, settings.idle_poll_seconds)


async def run_consumer(settings: Settings | None = None) -> None:
    settings = settings or Settings()
    if not settings.queue_name:
        raise ValueError("CONSUMER_QUEUE_NAME must be set")
    processor = load_processor(settings.processor)

    shutdown = asyncio.Event()

    def request_shutdown() -> None:
        if not shutdown.is_set():
            _log("shutdown_signal")
            shutdown.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except NotImplementedError:
            pass

    async with create_client_dependencies(settings) as deps:
        _log("consumer_started", queue=settings.queue_name, batch_size=settings.batch_size)
        await consume_until_shutdown(deps, processor, shutdown)
    _log("consumer_stopped")


def main() -> None:
    try:
        asyncio.run(run_consumer())
    except KeyboardInterrupt:
        _log("consumer_interrupted")
    except Exception as e:
        logger.exception("consumer failed: {}", e)
        raise


if __name__ == "__main__":
    main()

"""Client-level constants shared across modules."""
from __future__ import annotations

DEFAULT_VISIBILITY_TIMEOUT_SECONDS = 120
DEFAULT_DEDUPLICATION_WINDOW_SECONDS = 300

JSON_MEDIA_TYPE = "application/json"


class HttpMethod:
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class Paths:
    """Service endpoints. Queue-scoped paths expect an already escaped queue name."""

    HEALTH = "/health"
    METRICS = "/metrics"
    METRICS_SUMMARY = "/metrics/summary"
    QUEUES = "/queues"
    QUEUE = "/queues/{name}"
    QUEUE_SETTINGS = "/queues/{name}/settings"
    QUEUE_PURGE = "/queues/{name}/purge"
    QUEUE_DETAILS = "/queues/{name}/details"
    QUEUE_METRICS = "/queues/{name}/metrics"
    MESSAGES = "/queues/{name}/messages"
    MESSAGES_BATCH = "/queues/{name}/messages/batch"
    MESSAGES_GET = "/queues/{name}/messages/get"
    MESSAGES_PEEK = "/queues/{name}/messages/peek"
    MESSAGES_ALL = "/queues/{name}/messages/all"
    MESSAGE = "/queues/{name}/messages/{receipt_handle}"

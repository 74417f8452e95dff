"""Resource models. Field names are the wire contract of the queue service."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rsqueue.app.constants import (
    DEFAULT_DEDUPLICATION_WINDOW_SECONDS,
    DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
)
from rsqueue.app.domain.lease import Lease


class _WireModel(BaseModel):
    """Read-only model parsed from service responses; unknown fields are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class MessageStatus(str, Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"


class QueueSpec(_WireModel):
    name: str
    created_at: datetime
    visibility_timeout_seconds: int = DEFAULT_VISIBILITY_TIMEOUT_SECONDS
    enable_deduplication: bool = False
    deduplication_window_seconds: int = DEFAULT_DEDUPLICATION_WINDOW_SECONDS


class QueueInfo(QueueSpec):
    size: int = 0
    dedup_cache_size: int = 0


class Message(_WireModel):
    """A message as returned by dequeue.

    `receipt_handle` and `visible_after` are populated iff the message is
    currently leased; a parsed message with only one of them is rejected.
    """

    id: UUID
    content: str
    content_hash: str
    created_at: datetime
    receipt_handle: UUID | None = None
    visible_after: datetime | None = None

    @model_validator(mode="after")
    def check_lease_fields(self) -> "Message":
        if (self.receipt_handle is None) != (self.visible_after is None):
            raise ValueError("receipt_handle and visible_after must be both present or both absent")
        return self

    @property
    def lease(self) -> Lease | None:
        if self.receipt_handle is None or self.visible_after is None:
            return None
        return Lease(receipt_handle=self.receipt_handle, visible_after=self.visible_after)


class MessagePreview(_WireModel):
    """Inspection view of a message. Carries no receipt handle and cannot be deleted."""

    id: UUID
    content: str
    created_at: datetime
    status: MessageStatus
    visible_after: datetime | None = None

    @property
    def in_flight(self) -> bool:
        return self.status is MessageStatus.IN_FLIGHT


class QueueDetailInfo(QueueInfo):
    messages_pending: int = 0
    messages_in_flight: int = 0
    visible_messages: int = 0
    recent_messages: list[MessagePreview] = Field(default_factory=list)


# Requests


class CreateQueueRequest(BaseModel):
    name: str = Field(..., min_length=1)
    visibility_timeout_seconds: int = Field(DEFAULT_VISIBILITY_TIMEOUT_SECONDS, ge=0)
    enable_deduplication: bool = False
    deduplication_window_seconds: int = Field(DEFAULT_DEDUPLICATION_WINDOW_SECONDS, ge=0)


class UpdateQueueRequest(BaseModel):
    """Partial settings update. Fields left as None are not sent and keep their server value."""

    visibility_timeout_seconds: int | None = Field(None, ge=0)
    enable_deduplication: bool | None = None
    deduplication_window_seconds: int | None = Field(None, ge=0)

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)


class EnqueueRequest(BaseModel):
    content: str


class BatchEnqueueRequest(BaseModel):
    messages: list[str]


class GetMessagesRequest(BaseModel):
    count: int = Field(1, ge=1)


class PeekMessagesRequest(BaseModel):
    count: int = Field(1, ge=1)
    offset: int = Field(0, ge=0)


# Responses


@dataclass(frozen=True)
class EnqueueAccepted:
    index: int
    id: UUID


@dataclass(frozen=True)
class EnqueueRejected:
    index: int
    id: UUID | None
    reason: str


EnqueueOutcome = Union[EnqueueAccepted, EnqueueRejected]


class EnqueueResponse(_WireModel):
    """Result of one enqueue. `error` is set only on an application-level rejection (e.g. duplicate)."""

    id: UUID | None = None
    error: str | None = None

    @property
    def accepted(self) -> bool:
        return not self.error


class BatchEnqueueResponse(_WireModel):
    results: list[EnqueueResponse] = Field(default_factory=list)
    successful: int = 0
    failed: int = 0

    def outcomes(self) -> list[EnqueueOutcome]:
        """Per-item outcomes in request order."""
        outcomes: list[EnqueueOutcome] = []
        for index, result in enumerate(self.results):
            if result.accepted and result.id is not None:
                outcomes.append(EnqueueAccepted(index=index, id=result.id))
            else:
                outcomes.append(
                    EnqueueRejected(index=index, id=result.id, reason=result.error or "missing id")
                )
        return outcomes


# Monitoring


class HealthStatus(_WireModel):
    status: str
    timestamp: datetime
    uptime_seconds: int = 0
    version: str = ""
    active_queues: int = 0
    total_messages: int = 0


class MetricsSummary(_WireModel):
    timestamp: datetime
    messages_enqueued_total: int = 0
    messages_dequeued_total: int = 0
    messages_deleted_total: int = 0
    duplicate_messages_rejected_total: int = 0
    messages_expired_total: int = 0
    queues_created_total: int = 0
    queues_deleted_total: int = 0
    queues_purged_total: int = 0
    active_queues: int = 0
    total_messages_pending: int = 0
    total_messages_in_flight: int = 0
    http_requests_total: int = 0


class QueueMetrics(_WireModel):
    name: str
    messages_pending: int = 0
    messages_in_flight: int = 0
    total_size: int = 0
    visible_messages: int = 0
    dedup_cache_size: int = 0
    created_at: datetime
    visibility_timeout_seconds: int = DEFAULT_VISIBILITY_TIMEOUT_SECONDS
    enable_deduplication: bool = False

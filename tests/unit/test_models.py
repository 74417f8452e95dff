"""Resource model parsing and the lease invariant."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from pydantic import ValidationError

from rsqueue.app.application.queue_client import QueueClient
from rsqueue.app.domain.lease import Lease
from rsqueue.app.domain.models import (
    BatchEnqueueResponse,
    CreateQueueRequest,
    EnqueueAccepted,
    EnqueueRejected,
    GetMessagesRequest,
    Message,
    MessagePreview,
    MessageStatus,
    PeekMessagesRequest,
    UpdateQueueRequest,
)
from rsqueue.app.infrastructure.http.factory import build_httpx_client
from rsqueue.app.infrastructure.http.httpx_transport import HttpxTransport
from rsqueue.app.ports.transport import MalformedResponseError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _message_payload(**overrides):
    payload = {
        "id": str(uuid.uuid4()),
        "content": "hello",
        "content_hash": "abc",
        "created_at": "2026-03-01T12:00:00Z",
    }
    payload.update(overrides)
    return payload


def test_leased_message_exposes_lease():
    handle = uuid.uuid4()
    message = Message.model_validate(
        _message_payload(receipt_handle=str(handle), visible_after="2026-03-01T12:02:00Z")
    )

    assert message.lease == Lease(receipt_handle=handle, visible_after=NOW + timedelta(minutes=2))


def test_unleased_message_has_no_lease():
    assert Message.model_validate(_message_payload()).lease is None


@pytest.mark.parametrize(
    "partial",
    [
        {"receipt_handle": str(uuid.uuid4())},
        {"visible_after": "2026-03-01T12:02:00Z"},
    ],
)
def test_half_leased_message_is_rejected(partial):
    with pytest.raises(ValidationError):
        Message.model_validate(_message_payload(**partial))


def test_preview_status_and_no_receipt_handle():
    preview = MessagePreview.model_validate(
        {
            "id": str(uuid.uuid4()),
            "content": "x",
            "created_at": "2026-03-01T12:00:00Z",
            "status": "in_flight",
            "visible_after": "2026-03-01T12:02:00Z",
            "receipt_handle": str(uuid.uuid4()),
        }
    )

    assert preview.status is MessageStatus.IN_FLIGHT
    assert preview.in_flight
    assert not hasattr(preview, "receipt_handle")


def test_preview_unknown_status_rejected():
    with pytest.raises(ValidationError):
        MessagePreview.model_validate(
            {"id": str(uuid.uuid4()), "content": "x", "created_at": "2026-03-01T12:00:00Z", "status": "done"}
        )


def test_lease_expiry_and_remaining():
    lease = Lease(receipt_handle=uuid.uuid4(), visible_after=NOW)

    assert lease.expired(NOW)
    assert not lease.expired(NOW - timedelta(seconds=1))
    assert lease.remaining(NOW - timedelta(seconds=5)) == timedelta(seconds=5)
    assert lease.remaining(NOW + timedelta(seconds=5)) == timedelta(0)


def test_create_queue_request_defaults_and_validation():
    request = CreateQueueRequest(name="jobs")

    assert request.model_dump() == {
        "name": "jobs",
        "visibility_timeout_seconds": 120,
        "enable_deduplication": False,
        "deduplication_window_seconds": 300,
    }
    with pytest.raises(ValidationError):
        CreateQueueRequest(name="")
    with pytest.raises(ValidationError):
        CreateQueueRequest(name="jobs", visibility_timeout_seconds=-1)


def test_update_queue_request_payload_omits_unset_fields():
    assert UpdateQueueRequest().to_payload() == {}
    assert UpdateQueueRequest(deduplication_window_seconds=10).to_payload() == {
        "deduplication_window_seconds": 10
    }


def test_count_and_offset_bounds():
    with pytest.raises(ValidationError):
        GetMessagesRequest(count=0)
    with pytest.raises(ValidationError):
        PeekMessagesRequest(count=1, offset=-1)


def test_batch_outcomes_tag_each_item_in_order():
    ok_id = uuid.uuid4()
    dup_id = uuid.uuid4()
    response = BatchEnqueueResponse.model_validate(
        {
            "results": [{"id": str(ok_id)}, {"id": str(dup_id), "error": "duplicate"}],
            "successful": 1,
            "failed": 1,
        }
    )

    assert response.outcomes() == [
        EnqueueAccepted(index=0, id=ok_id),
        EnqueueRejected(index=1, id=dup_id, reason="duplicate"),
    ]


@pytest.mark.asyncio
async def test_unexpected_body_shape_raises_malformed_response():
    http_client = build_httpx_client(
        "http://rsqueue.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"not": "a list"})),
    )
    transport = HttpxTransport(http_client)
    try:
        with pytest.raises(MalformedResponseError):
            await QueueClient(transport).dequeue("q", 1)
    finally:
        await transport.close()

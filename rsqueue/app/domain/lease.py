"""Lease (visibility timeout) rules for leased messages.

A lease is the exclusive, time-bounded claim a consumer receives from a dequeue.
It is proven by a receipt handle that is minted fresh for every lease, is valid
for exactly one delete, and only until `visible_after`. Nothing needs to be
done to release a lease: if no delete arrives before `visible_after` the
service makes the message visible again and the next dequeue leases it under a
new handle. There is no renewal call; processing that outlives the lease may
run concurrently with a redelivery, so processors must be idempotent.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Lease:
    """Receipt handle and expiry of one lease. Handles are never reused across leases."""

    receipt_handle: UUID
    visible_after: datetime

    def expired(self, now: datetime | None = None) -> bool:
        """True once the lease can no longer be used to delete (local clock view)."""
        current = _aware(now or utc_now())
        return current >= _aware(self.visible_after)

    def remaining(self, now: datetime | None = None) -> timedelta:
        current = _aware(now or utc_now())
        left = _aware(self.visible_after) - current
        return max(left, timedelta(0))

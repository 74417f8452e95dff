"""Backoff utilities.

`Backoff` tracks consecutive failures of a repeated operation and hands out the
delay to wait before the next attempt. Delays grow by `multiplier` from
`initial_delay` and are capped at `max_delay`; `reset()` is called after a
success so the next failure starts from the initial delay again.
"""
from __future__ import annotations


class Backoff:
    def __init__(self, initial_delay: float, max_delay: float, multiplier: float = 2.0) -> None:
        if initial_delay < 0 or max_delay < 0:
            raise ValueError("backoff delays must be non-negative")
        if multiplier < 1:
            raise ValueError("backoff multiplier must be >= 1")
        self._initial = float(initial_delay)
        self._max = float(max_delay)
        self._multiplier = float(multiplier)
        self._failures = 0

    @property
    def failures(self) -> int:
        return self._failures

    def next_delay(self) -> float:
        """Record one more failure and return the delay before retrying."""
        delay = min(self._initial * (self._multiplier ** self._failures), self._max)
        self._failures += 1
        return delay

    def reset(self) -> None:
        self._failures = 0

"""Port: caller-supplied processing of one leased message."""
from __future__ import annotations

from typing import Awaitable, Callable, Union

from rsqueue.app.domain.models import Message

# Returns True when the message is done and should be deleted. Any other
# result (False, None, a truthy non-bool) or an exception leaves it for
# redelivery once its lease lapses. Plain callables returning bool are
# accepted as well as coroutine functions.
MessageProcessor = Callable[[Message], Union[Awaitable[bool], bool]]

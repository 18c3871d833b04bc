"""Event channel and NDJSON encoder for the outbound run stream.

The agent loop is the only writer and the HTTP transport the only reader.
Events are observed in emission order; the protocol has no sequence
numbers. The channel is bounded, so a slow reader blocks the writer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import BaseModel

logger = logging.getLogger(__name__)

_CLOSED = object()


def encode_event(event: BaseModel) -> str:
    """Serialize one event as a newline-terminated JSON line.

    Optional fields that are unset are omitted rather than sent as null.
    """
    return event.model_dump_json(by_alias=True, exclude_none=True) + "\n"


class EventChannel:
    """Single-producer/single-consumer event queue with explicit closing.

    ``close()`` is idempotent. ``send()`` on a closed channel is a no-op:
    once the reader is gone there is no one left to report to.
    """

    def __init__(self, maxsize: int = 64) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: BaseModel) -> bool:
        """Queue an event. Returns False if the channel was already closed."""
        if self._closed:
            logger.debug(f"Dropping '{getattr(event, 'type', '?')}' event: channel closed")
            return False
        await self._queue.put(event)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # The reader stops on its own once the queue drains.
            pass

    def __aiter__(self) -> AsyncIterator[BaseModel]:
        return self._drain()

    async def _drain(self) -> AsyncIterator[BaseModel]:
        while not (self._closed and self._queue.empty()):
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


async def encode_stream(channel: EventChannel) -> AsyncIterator[str]:
    """Read events off the channel and yield NDJSON lines until it closes."""
    async for event in channel:
        yield encode_event(event)

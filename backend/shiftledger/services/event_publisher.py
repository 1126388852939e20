"""Event Publisher — in-process fan-out of production updates to stream subscribers.

Invariants:
    - publish() never blocks and never raises into the accumulator
    - A full subscriber queue drops that subscriber's newest event (logged), other
      subscribers are unaffected
    - Subscribers are removed when their context exits (client disconnect)

Design Decisions:
    - asyncio.Queue per subscriber: the SSE route drains its own queue at its own pace
    - Bounded queues (event_queue_size): a stalled client cannot grow memory without limit
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from shiftledger.core.production_events import ProductionUpdateEvent

logger = logging.getLogger(__name__)


class BroadcastEventPublisher:
    """EventPublisher that copies every event to all current subscribers."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()
        self.published_count = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: ProductionUpdateEvent) -> None:
        """Fire-and-forget: enqueue for every subscriber, never await."""
        self.published_count += 1
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    "Subscriber queue full, dropping production event",
                    extra={"machine_id": event.machine_id},
                )

    @asynccontextmanager
    async def subscribe(self) -> AsyncGenerator[asyncio.Queue, None]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        try:
            yield queue
        finally:
            self._subscribers.discard(queue)

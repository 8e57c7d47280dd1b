"""In-process fan-out of notification events to connected websockets.

Events are transient: a user with no open connection simply misses them
(the persisted notification row remains).
"""
import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)


class NotificationBroker:
    """Per-user bounded queues, safe to publish to from worker threads."""

    QUEUE_SIZE = 100

    def __init__(self):
        self._subscribers: Dict[str, List[Tuple[asyncio.Queue, asyncio.AbstractEventLoop]]] = defaultdict(list)

    def subscribe(self, user_id: str) -> asyncio.Queue:
        """Register a queue for ``user_id``. Must be called from the event loop."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.QUEUE_SIZE)
        self._subscribers[user_id].append((queue, asyncio.get_running_loop()))
        logger.info(f"Notification subscriber added for user {user_id}")
        return queue

    def unsubscribe(self, user_id: str, queue: asyncio.Queue) -> None:
        subscribers = self._subscribers.get(user_id, [])
        self._subscribers[user_id] = [(q, loop) for q, loop in subscribers if q is not queue]
        if not self._subscribers[user_id]:
            del self._subscribers[user_id]

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, []))

    def publish(self, user_id: str, event: dict) -> int:
        """Queue ``event`` for every connection of ``user_id``; returns deliveries."""
        delivered = 0
        for queue, loop in list(self._subscribers.get(user_id, [])):
            if loop.is_closed():
                self.unsubscribe(user_id, queue)
                continue
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                self._offer(queue, event)
            else:
                loop.call_soon_threadsafe(self._offer, queue, event)
            delivered += 1
        return delivered

    @staticmethod
    def _offer(queue: asyncio.Queue, event: dict) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Notification queue full, dropping event")

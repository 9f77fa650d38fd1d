import asyncio
import time
from core.errors import BusError
from core.observer import get_logger

class Subscriber:
    __slots__ = ("name", "queue", "topics", "latest_only", "created_at", "received", "dropped")

    def __init__(self, name, queue, topics=None, latest_only=False):
        self.name = name
        self.queue = queue
        self.topics = topics or set()
        self.latest_only = latest_only
        self.created_at = time.time()
        self.received = 0
        self.dropped = 0

    def offer(self, item):
        """Queue item. A full latest_only queue evicts its oldest entry instead of refusing."""
        try:
            self.queue.put_nowait(item)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            if not self.latest_only:
                return False
        # Stale frames are worthless to a display, keep the newest
        self.queue.get_nowait()
        self.queue.put_nowait(item)
        return True

class EventBus:
    """Copy-on-write pub/sub for heatmap frames and control events. Publish path is lock-free."""

    def __init__(self, queue_size=50):
        self._lock = asyncio.Lock()
        self._subscribers = {}
        self._subscribers_snapshot = []
        self._queue_size = queue_size
        self._log = get_logger(component="bus")
        self.total_published = 0
        self.total_delivered = 0
        self.total_dropped = 0

    async def subscribe(self, name, max_queue_size=None, topics=None, latest_only=False):
        if not name:
            raise BusError("subscriber name is required")
        async with self._lock:
            if name in self._subscribers:
                return self._subscribers[name]
            queue = asyncio.Queue(maxsize=max_queue_size or self._queue_size)
            subscriber = Subscriber(name, queue, set(topics) if topics else set(), latest_only)
            self._subscribers[name] = subscriber
            self._subscribers_snapshot = list(self._subscribers.values())
            self._log.info(f"sub+ {name}", latest_only=latest_only)
            return subscriber

    async def unsubscribe(self, name):
        async with self._lock:
            if self._subscribers.pop(name, None) is None:
                return False
            self._subscribers_snapshot = list(self._subscribers.values())
            self._log.info(f"sub- {name}")
            return True

    async def publish(self, item, topic=""):
        delivered = dropped = 0
        for subscriber in self._subscribers_snapshot:
            if subscriber.topics and topic not in subscriber.topics:
                continue
            before = subscriber.dropped
            if subscriber.offer(item):
                subscriber.received += 1
                delivered += 1
            dropped += subscriber.dropped - before
        self.total_published += 1
        self.total_delivered += delivered
        self.total_dropped += dropped
        return delivered

    def get_stats(self):
        return {
            "subscriber_count": len(self._subscribers_snapshot),
            "total_published": self.total_published,
            "total_delivered": self.total_delivered,
            "total_dropped": self.total_dropped
        }

    async def get_subscriber_info(self):
        return [
            {   "name": subscriber.name,
                "latest_only": subscriber.latest_only,
                "queued": subscriber.queue.qsize(),
                "received": subscriber.received,
                "dropped": subscriber.dropped
            } for subscriber in self._subscribers_snapshot
        ]

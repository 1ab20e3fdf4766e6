from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from normalize.timeutil import utc_now_iso


logger = structlog.get_logger(__name__)

ALL_TOPICS = "*"


@dataclass(frozen=True)
class Event:
    type: str
    topic: str
    action: str
    data: dict
    timestamp: str = field(default_factory=utc_now_iso)

    def to_message(self) -> dict:
        return {
            "event": self.type,
            "topic": self.topic,
            "action": self.action,
            "data": self.data,
            "timestamp": self.timestamp,
        }


@dataclass
class Subscription:
    queue: asyncio.Queue[Event]
    topics: set[str]

    def wants(self, topic: str) -> bool:
        return ALL_TOPICS in self.topics or topic in self.topics


class EventBus:
    """Per-topic fan-out with at-most-once, best-effort delivery.

    Subscribers that join after an event was published never see it. A slow
    subscriber loses its oldest queued event rather than blocking publishers.
    """

    def __init__(self, queue_size: int = 200) -> None:
        self._queue_size = queue_size
        self._subscribers: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, topics: set[str] | None = None) -> Subscription:
        sub = Subscription(
            queue=asyncio.Queue(maxsize=self._queue_size), topics=set(topics or ())
        )
        self._subscribers.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)

    def join(self, sub: Subscription, topic: str) -> None:
        sub.topics.add(str(topic))

    def leave(self, sub: Subscription, topic: str) -> None:
        sub.topics.discard(str(topic))

    async def publish(self, event: Event) -> int:
        delivered = 0
        for sub in list(self._subscribers):
            if not sub.wants(event.topic):
                continue
            try:
                sub.queue.put_nowait(event)
            except asyncio.QueueFull:
                _ = sub.queue.get_nowait()
                sub.queue.put_nowait(event)
            delivered += 1
        logger.info(
            "event published",
            event_type=event.type,
            topic=event.topic,
            action=event.action,
            delivered=delivered,
        )
        return delivered

    async def emit(self, type: str, *, topic: str, action: str, data: dict) -> int:
        return await self.publish(
            Event(type=type, topic=str(topic), action=action, data=data)
        )

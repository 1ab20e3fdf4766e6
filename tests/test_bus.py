import asyncio

from realtime.bus import ALL_TOPICS, Event, EventBus


def _event(topic: str, action: str = "update") -> Event:
    return Event(type="disaster_updated", topic=topic, action=action, data={"id": topic})


def test_events_reach_only_matching_topics() -> None:
    async def run():
        bus = EventBus()
        one = bus.subscribe({"1"})
        two = bus.subscribe({"2"})
        everything = bus.subscribe({ALL_TOPICS})
        delivered = await bus.publish(_event("1"))
        return delivered, one.queue.qsize(), two.queue.qsize(), everything.queue.qsize()

    assert asyncio.run(run()) == (2, 1, 0, 1)


def test_join_leave_and_unsubscribe() -> None:
    async def run():
        bus = EventBus()
        sub = bus.subscribe()
        assert await bus.publish(_event("3")) == 0
        bus.join(sub, "3")
        assert await bus.publish(_event("3")) == 1
        bus.leave(sub, "3")
        assert await bus.publish(_event("3")) == 0
        bus.unsubscribe(sub)
        bus.unsubscribe(sub)
        return bus.subscriber_count, sub.queue.qsize()

    assert asyncio.run(run()) == (0, 1)


def test_full_queue_drops_oldest() -> None:
    async def run():
        bus = EventBus(queue_size=2)
        sub = bus.subscribe({"1"})
        for action in ("create", "update", "delete"):
            await bus.emit("disaster_updated", topic="1", action=action, data={})
        return [sub.queue.get_nowait().action for _ in range(sub.queue.qsize())]

    assert asyncio.run(run()) == ["update", "delete"]


def test_event_message_shape() -> None:
    message = _event("7", "create").to_message()
    assert set(message) == {"event", "topic", "action", "data", "timestamp"}
    assert message["event"] == "disaster_updated"
    assert message["timestamp"].endswith("Z")

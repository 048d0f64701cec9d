import pytest

from marketlens.infrastructure.event_bus import EventBus


class TestEventBus:

    @pytest.mark.asyncio
    async def test_fan_out_to_every_subscriber(self):
        bus = EventBus()
        q1 = await bus.subscribe("ticker", "a")
        q2 = await bus.subscribe("ticker", "b")

        await bus.publish("ticker", {"price": 1})

        assert q1.get_nowait() == {"price": 1}
        assert q2.get_nowait() == {"price": 1}
        assert set(bus.stats["ticker"]) == {"a", "b"}

    @pytest.mark.asyncio
    async def test_topics_are_isolated(self):
        bus = EventBus()
        ticker = await bus.subscribe("ticker", "a")
        await bus.publish("candle_update", "x")
        assert ticker.empty()

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest_and_counts(self):
        bus = EventBus(max_queue_size=2)
        queue = await bus.subscribe("market_event", "slow")
        fast = await bus.subscribe("market_event", "fast")

        for i in range(4):
            await bus.publish("market_event", i)
            if not fast.empty():
                fast.get_nowait()

        assert [queue.get_nowait(), queue.get_nowait()] == [2, 3]
        stats = bus.stats["market_event"]
        assert stats["slow"] == {"queued": 0, "delivered": 4, "dropped": 2}
        assert stats["fast"]["dropped"] == 0

    @pytest.mark.asyncio
    async def test_unsubscribe_all(self):
        bus = EventBus()
        await bus.subscribe("ticker", "a")
        await bus.subscribe("candle_update", "b")

        await bus.unsubscribe_all("ticker")
        assert list(bus.stats) == ["candle_update"]

        await bus.unsubscribe_all()
        assert bus.stats == {}

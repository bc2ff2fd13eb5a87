"""Tests for glint.live.channel — bounded fan-out to push connections."""

from __future__ import annotations

import asyncio

import pytest

from glint.live.channel import LiveChannel, Subscription
from glint.live.messages import RELOAD, Diff, DiffResource


def _diff(n: int) -> Diff:
    return Diff(path=f"/{n}.css", resource=DiffResource.CSS)


class TestSubscriptions:
    def test_subscribe_and_unsubscribe(self) -> None:
        channel = LiveChannel()
        sub = channel.subscribe()
        assert channel.subscriber_count == 1

        channel.unsubscribe(sub)
        assert channel.subscriber_count == 0
        assert sub.closed

    def test_unsubscribe_twice_is_harmless(self) -> None:
        channel = LiveChannel()
        sub = channel.subscribe()
        channel.unsubscribe(sub)
        channel.unsubscribe(sub)
        assert channel.subscriber_count == 0

    def test_ids_are_unique(self) -> None:
        channel = LiveChannel()
        assert channel.subscribe().id != channel.subscribe().id


class TestPublish:
    def test_reaches_every_subscriber(self) -> None:
        channel = LiveChannel()
        subs = [channel.subscribe() for _ in range(3)]

        assert channel.publish(RELOAD) == 3
        assert all(sub.pending == 1 for sub in subs)

    def test_no_subscribers(self) -> None:
        assert LiveChannel().publish(RELOAD) == 0

    def test_late_subscriber_misses_earlier_messages(self) -> None:
        channel = LiveChannel()
        early = channel.subscribe()
        channel.publish(_diff(1))
        late = channel.subscribe()
        channel.publish(_diff(2))

        assert early.pending == 2
        assert late.pending == 1

    def test_unsubscribed_does_not_receive(self) -> None:
        channel = LiveChannel()
        sub = channel.subscribe()
        channel.unsubscribe(sub)
        assert channel.publish(RELOAD) == 0
        assert sub.pending == 0


class TestBackpressure:
    def test_overflow_drops_oldest_for_that_subscriber_only(self) -> None:
        channel = LiveChannel(capacity=2)
        slow = channel.subscribe()
        channel.publish(_diff(1))
        fast = channel.subscribe()
        channel.publish(_diff(2))
        channel.publish(_diff(3))

        assert slow.pending == 2
        assert slow.dropped == 1
        assert fast.pending == 2
        assert fast.dropped == 0

    @pytest.mark.asyncio
    async def test_overflow_keeps_newest_in_order(self) -> None:
        sub = Subscription(capacity=3)
        for n in range(5):
            sub.push(_diff(n))
        sub.close()

        received = [m async for m in sub]
        assert received == [_diff(2), _diff(3), _diff(4)]


class TestConsuming:
    @pytest.mark.asyncio
    async def test_order_preserved(self) -> None:
        channel = LiveChannel()
        sub = channel.subscribe()
        for n in range(3):
            channel.publish(_diff(n))

        assert [await sub.get() for _ in range(3)] == [_diff(0), _diff(1), _diff(2)]

    @pytest.mark.asyncio
    async def test_waiting_consumer_is_woken(self) -> None:
        channel = LiveChannel()
        sub = channel.subscribe()
        waiter = asyncio.create_task(sub.get())
        await asyncio.sleep(0)
        assert not waiter.done()

        channel.publish(RELOAD)
        assert await asyncio.wait_for(waiter, timeout=1) == RELOAD

    @pytest.mark.asyncio
    async def test_iteration_ends_on_channel_close(self) -> None:
        channel = LiveChannel()
        sub = channel.subscribe()
        channel.publish(RELOAD)

        async def drain() -> list[object]:
            return [m async for m in sub]

        task = asyncio.create_task(drain())
        await asyncio.sleep(0)
        channel.close()

        assert await asyncio.wait_for(task, timeout=1) == [RELOAD]
        assert channel.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_subscribe_after_close_is_closed(self) -> None:
        channel = LiveChannel()
        channel.close()
        sub = channel.subscribe()

        assert sub.closed
        assert channel.publish(RELOAD) == 0
        with pytest.raises(StopAsyncIteration):
            await sub.get()

    def test_push_after_close_rejected(self) -> None:
        sub = Subscription()
        sub.close()
        assert sub.push(RELOAD) is False
        assert sub.pending == 0

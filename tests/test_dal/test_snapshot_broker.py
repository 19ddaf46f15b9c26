"""Tests for in-process snapshot fan-out."""

import asyncio

import pytest

from homegame.dal.subscriptions import (
    SnapshotBroker,
    game_topic,
    invites_topic,
    listen_and_refresh,
)


class TestListen:

    @pytest.mark.asyncio
    async def test_delivers_to_sync_and_async_listeners(self):
        broker = SnapshotBroker()
        seen = []

        async def async_listener(payload):
            seen.append(("async", payload))

        broker.listen("t", lambda payload: seen.append(("sync", payload)))
        broker.listen("t", async_listener)

        await broker.publish("t", 1)

        assert seen == [("sync", 1), ("async", 1)]

    @pytest.mark.asyncio
    async def test_topics_are_isolated(self):
        broker = SnapshotBroker()
        seen = []
        broker.listen(game_topic("a"), seen.append)

        await broker.publish(game_topic("b"), "b")
        await broker.publish(invites_topic("a"), "invite")

        assert seen == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_others(self):
        broker = SnapshotBroker()
        seen = []

        def broken(payload):
            raise RuntimeError("boom")

        broker.listen("t", broken)
        broker.listen("t", seen.append)

        await broker.publish("t", "snapshot")

        assert seen == ["snapshot"]


class TestRemove:

    @pytest.mark.asyncio
    async def test_remove_stops_delivery(self):
        broker = SnapshotBroker()
        seen = []
        registration = broker.listen("t", seen.append)

        registration.remove()
        await broker.publish("t", 1)

        assert seen == []
        assert registration.active is False
        assert broker.listener_count("t") == 0

    def test_remove_is_idempotent(self):
        broker = SnapshotBroker()
        first = broker.listen("t", lambda _: None)
        second = broker.listen("t", lambda _: None)

        first.remove()
        first.remove()
        first.remove()

        assert broker.listener_count("t") == 1
        assert second.active is True

    @pytest.mark.asyncio
    async def test_listener_may_remove_itself_while_publishing(self):
        broker = SnapshotBroker()
        seen = []
        holder = {}

        def once(payload):
            seen.append(payload)
            holder["registration"].remove()

        holder["registration"] = broker.listen("t", once)

        await broker.publish("t", 1)
        await broker.publish("t", 2)

        assert seen == [1]


class TestListenAndRefresh:

    @pytest.mark.asyncio
    async def test_refreshes_now_and_after_wanted_publishes(self, wait_until):
        broker = SnapshotBroker()
        calls = []

        async def refresh():
            calls.append(len(calls))

        registration = await listen_and_refresh(
            broker, "t", refresh, wants=lambda payload: payload != "skip"
        )
        assert calls == [0]

        await broker.publish("t", "skip")
        await asyncio.sleep(0.05)
        assert calls == [0]

        await broker.publish("t", "go")
        await wait_until(lambda: len(calls) == 2)
        registration.remove()
        await broker.publish("t", "go")
        await asyncio.sleep(0.05)

        assert calls == [0, 1]
        assert broker.listener_count("t") == 0

    @pytest.mark.asyncio
    async def test_publish_returns_before_refresh_finishes(self, wait_until):
        broker = SnapshotBroker()
        release = asyncio.Event()
        calls = []

        async def refresh():
            calls.append(1)
            if len(calls) > 1:
                await release.wait()

        registration = await listen_and_refresh(broker, "t", refresh)

        await asyncio.wait_for(broker.publish("t", 1), timeout=1)
        await wait_until(lambda: len(calls) == 2)
        release.set()
        registration.remove()

    @pytest.mark.asyncio
    async def test_failing_refresh_keeps_worker_alive(self, wait_until):
        broker = SnapshotBroker()
        calls = []

        async def refresh():
            calls.append(1)
            if len(calls) == 2:
                raise RuntimeError("boom")

        registration = await listen_and_refresh(broker, "t", refresh)

        await broker.publish("t", 1)
        await wait_until(lambda: len(calls) == 2)
        await broker.publish("t", 2)
        await wait_until(lambda: len(calls) == 3)
        registration.remove()

    @pytest.mark.asyncio
    async def test_failed_first_refresh_detaches(self):
        broker = SnapshotBroker()

        async def refresh():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await listen_and_refresh(broker, "t", refresh)

        assert broker.listener_count("t") == 0

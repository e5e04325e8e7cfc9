"""Tests for Injected — creation, mutation, async settlement and persistence."""

import asyncio
import concurrent.futures
import logging

import pytest

from injectx import (
    IDLE,
    Data,
    MemoryStore,
    PersistState,
    Registry,
    asyncio_scheduler,
)
from injectx.exceptions import ConfigurationError


class TestCreation:
    def test_sync_creator_starts_idle_with_value(self):
        user = Registry().inject(lambda: "ann")
        assert user.is_idle
        assert user.state == "ann"

    def test_lazy_by_default(self):
        calls = []
        user = Registry().inject(lambda: calls.append(1) or "ann")
        assert calls == []
        assert user.state == "ann"
        assert calls == [1]
        user.state
        assert calls == [1]

    def test_eager(self):
        calls = []
        Registry().inject(lambda: calls.append(1), lazy=False)
        assert calls == [1]

    def test_initial_state_exposed_while_waiting(self):
        future = concurrent.futures.Future()
        user = Registry().inject(lambda: future, initial_state="guest")
        assert user.is_waiting
        assert user.state == "guest"

    def test_creator_error_becomes_status(self):
        errors = []

        def broken():
            raise ValueError("boom")

        user = Registry().inject(broken, on_error=errors.append)
        assert user.has_error
        assert isinstance(user.error, ValueError)
        assert errors == [user.error]

    def test_on_initialized_receives_state(self):
        seen = []
        user = Registry().inject(lambda: 3, on_initialized=seen.append)
        user.status
        assert seen == [3]

    def test_repr(self):
        user = Registry().inject(lambda: 1, name="user")
        assert repr(user) == "Injected(user, uncreated)"
        user.state
        assert repr(user) == "Injected(user, Idle())"


class TestMutation:
    def test_assigning_state_produces_data(self):
        seen = []
        counter = Registry().inject(lambda: 0, on_data=seen.append)
        log = []
        counter.subscribe(lambda status, state: log.append(status))
        counter.state = 5
        assert counter.status == Data(5)
        assert log == [Data(5)]
        assert seen == [5]

    def test_set_state_derives_from_current(self):
        counter = Registry().inject(lambda: 1)
        counter.set_state(lambda n: n + 1)
        counter.set_state(lambda n: n * 10)
        assert counter.state == 20
        assert counter.has_data

    def test_set_state_error_keeps_last_value(self):
        counter = Registry().inject(lambda: 1)
        counter.set_state(lambda n: n / 0)
        assert counter.has_error
        assert isinstance(counter.error, ZeroDivisionError)
        assert counter.state == 1

    def test_refresh_reruns_creator(self):
        values = iter([1, 2])
        counter = Registry().inject(lambda: next(values))
        assert counter.state == 1
        counter.refresh()
        assert counter.state == 2
        assert counter.is_idle

    def test_inject_mock_replaces_creator(self):
        user = Registry().inject(lambda: "real")
        assert user.state == "real"
        user.inject_mock(lambda: "fake")
        assert user.state == "fake"


class TestThreadFutures:
    def test_settles_through_scheduler(self):
        registry = Registry()
        future = concurrent.futures.Future()
        waiting = []
        user = registry.inject(lambda: future, on_waiting=lambda: waiting.append(True))
        assert user.is_waiting
        assert waiting == [True]
        future.set_result("ann")
        assert user.is_waiting  # not yet marshalled
        registry.run_pending()
        assert user.status == Data("ann")

    def test_failure_settles_to_error(self):
        registry = Registry()
        future = concurrent.futures.Future()
        user = registry.inject(lambda: future)
        future.set_exception(TimeoutError("slow"))
        registry.run_pending()
        assert isinstance(user.error, TimeoutError)

    def test_worker_thread(self):
        registry = Registry()
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            user = registry.inject(lambda: pool.submit(lambda: 41 + 1))
            user.status
        registry.run_pending()
        assert user.state == 42

    def test_late_settlement_after_dispose_is_dropped(self):
        registry = Registry()
        future = concurrent.futures.Future()
        user = registry.inject(lambda: future)
        log = []
        user.subscribe(lambda status, state: log.append(status))
        user.dispose()
        future.set_result("late")
        registry.run_pending()
        assert log == []
        assert user.disposed


class TestAwaitables:
    def test_coroutine_creator(self):
        async def main():
            registry = Registry(scheduler=asyncio_scheduler())

            async def fetch():
                await asyncio.sleep(0)
                return "ann"

            user = registry.inject(fetch)
            log = []
            user.subscribe(lambda status, state: log.append(status))
            assert user.is_waiting
            await asyncio.sleep(0.01)
            assert log == [Data("ann")]
            assert user.state == "ann"

        asyncio.run(main())

    def test_coroutine_failure(self):
        async def main():
            registry = Registry(scheduler=asyncio_scheduler())

            async def fetch():
                raise LookupError("missing")

            user = registry.inject(fetch)
            user.status
            await asyncio.sleep(0.01)
            assert isinstance(user.error, LookupError)

        asyncio.run(main())

    def test_async_set_state(self):
        async def main():
            counter = Registry(scheduler=asyncio_scheduler()).inject(lambda: 1)

            async def double(n):
                return n * 2

            counter.set_state(lambda n: double(n))
            assert counter.is_waiting
            assert counter.state == 1
            await asyncio.sleep(0.01)
            assert counter.status == Data(2)

        asyncio.run(main())

    def test_caller_future_resolved_after_dispose(self):
        async def main():
            registry = Registry(scheduler=asyncio_scheduler())
            future = asyncio.get_running_loop().create_future()
            user = registry.inject(lambda: future)
            log = []
            user.subscribe(lambda status, state: log.append(status))
            user.dispose()
            assert not future.cancelled()
            future.set_result("late")
            await asyncio.sleep(0.01)
            assert log == []
            assert future.result() == "late"

        asyncio.run(main())

    def test_dispose_cancels_pending(self):
        async def main():
            registry = Registry(scheduler=asyncio_scheduler())
            gate = asyncio.Event()

            async def fetch():
                await gate.wait()
                return "late"

            user = registry.inject(fetch)
            log = []
            user.subscribe(lambda status, state: log.append(status))
            user.dispose()
            gate.set()
            await asyncio.sleep(0.01)
            assert log == []

        asyncio.run(main())


class TestLifecycle:
    def test_auto_dispose_after_last_observer(self):
        registry = Registry()
        disposed = []
        user = registry.inject(lambda: "ann", on_disposed=disposed.append)
        unsubscribe = user.subscribe(lambda s, v: None)
        unsubscribe()
        assert not user.disposed
        registry.run_pending()
        assert user.disposed
        assert disposed == ["ann"]

    def test_resubscribe_in_grace_window_keeps_state(self):
        registry = Registry()
        user = registry.inject(lambda: "ann")
        user.subscribe(lambda s, v: None)()
        user.state = "bob"
        user.subscribe(lambda s, v: None)
        registry.run_pending()
        assert not user.disposed
        assert user.state == "bob"

    def test_recreated_after_auto_dispose(self):
        registry = Registry()
        calls = []
        user = registry.inject(lambda: calls.append(1) or len(calls))
        user.subscribe(lambda s, v: None)()
        registry.run_pending()
        assert user.disposed
        assert user.state == 2
        assert user.is_idle

    def test_auto_dispose_off(self):
        registry = Registry()
        user = registry.inject(lambda: "ann", auto_dispose=False)
        user.subscribe(lambda s, v: None)()
        registry.run_pending()
        assert not user.disposed


class TestPersistence:
    def test_missing_token_persists_default(self):
        store = MemoryStore()
        counter = Registry(store=store).inject(lambda: 0, persist=PersistState("counter"))
        assert counter.state == 0
        assert counter.is_idle
        assert store.data == {"counter": "0"}

    def test_hydrates_from_store(self):
        store = MemoryStore({"counter": "5"})
        calls = []
        counter = Registry(store=store).inject(lambda: calls.append(1) or 0, persist=PersistState("counter"))
        assert counter.state == 5
        assert counter.status == IDLE
        assert calls == []

    def test_corrupt_token_falls_back_to_creator(self, caplog):
        store = MemoryStore({"counter": "{not json"})
        counter = Registry(store=store).inject(lambda: 0, persist=PersistState("counter"))
        with caplog.at_level(logging.WARNING, logger="injectx.injected"):
            assert counter.state == 0
        assert store.data["counter"] == "0"
        assert "counter" in caplog.text

    def test_write_happens_before_notify(self):
        store = MemoryStore()
        counter = Registry(store=store).inject(lambda: 0, persist=PersistState("counter"))
        seen = []
        counter.subscribe(lambda status, state: seen.append(store.data["counter"]))
        counter.state = 3
        counter.set_state(lambda n: n + 1)
        assert seen == ["3", "4"]

    def test_requires_a_store(self):
        with pytest.raises(ConfigurationError):
            Registry().inject(lambda: 0, persist=PersistState("counter"))

    def test_own_store_wins(self):
        shared, own = MemoryStore(), MemoryStore()
        counter = Registry(store=shared).inject(lambda: 1, persist=PersistState("counter", store=own))
        counter.state = 2
        assert own.data == {"counter": "2"}
        assert shared.data == {}

    def test_delete_persisted(self):
        store = MemoryStore()
        counter = Registry(store=store).inject(lambda: 0, persist=PersistState("counter"))
        counter.state = 9
        counter.delete_persisted()
        assert "counter" not in store.data
        assert counter.state == 9

    def test_async_store_read(self):
        class AsyncStore(MemoryStore):
            async def get(self, key):
                return self.data.get(key)

        async def main():
            store = AsyncStore({"counter": "7"})
            registry = Registry(scheduler=asyncio_scheduler(), store=store)
            counter = registry.inject(lambda: 0, persist=PersistState("counter"))
            assert counter.is_waiting
            await asyncio.sleep(0.01)
            assert counter.is_idle
            assert counter.state == 7

        asyncio.run(main())

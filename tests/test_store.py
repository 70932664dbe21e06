from __future__ import annotations

import asyncio

import pytest

from storyloom.history import operations as ops
from storyloom.state.store import StateStore

from helpers import action


@pytest.mark.asyncio
async def test_set_commits_a_new_state(store):
    before = store.state
    await store.set(lambda s: ops.add_version(s, 0, action("go east"), "edit"))
    assert store.state is not before
    assert store.state.events[0] == action("go east")
    # The previous snapshot is untouched
    assert before.events[0] == action("go north")
    assert before.event_history == {}


@pytest.mark.asyncio
async def test_failing_mutator_is_rolled_back(store):
    before = store.state

    def mutate(state):
        ops.add_version(state, 0, action("go east"), "edit")
        ops.delete_event(state, 1)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await store.set(mutate)

    assert store.state is before
    assert store.state.events[0] == action("go north")
    assert len(store.state.events) == 5
    assert store.state.event_history == {}


@pytest.mark.asyncio
async def test_failing_async_updater_is_rolled_back(store):
    async def update(state):
        ops.delete_event(state, 0)
        await asyncio.sleep(0)
        raise ValueError("bad schema")

    with pytest.raises(ValueError):
        await store.set_async(update)
    assert len(store.state.events) == 5


@pytest.mark.asyncio
async def test_updates_queue_behind_async_step(store):
    gate = asyncio.Event()
    order = []

    async def slow(state):
        order.append("slow-start")
        await gate.wait()
        ops.add_version(state, 0, action("slow"), "edit")
        order.append("slow-end")

    def fast(state):
        order.append("fast")
        ops.add_version(state, 0, action("fast"), "edit")

    slow_task = asyncio.create_task(store.set_async(slow))
    await asyncio.sleep(0)
    fast_task = asyncio.create_task(store.set(fast))
    await asyncio.sleep(0)

    assert store.busy
    assert order == ["slow-start"]
    # Nothing committed while the slow step is suspended
    assert store.state.events[0] == action("go north")

    gate.set()
    await asyncio.gather(slow_task, fast_task)

    assert order == ["slow-start", "slow-end", "fast"]
    history = store.state.event_history["0"]
    assert [e.event.action for e in history.entries] == ["go north", "slow", "fast"]
    assert store.state.events[0] == action("fast")


@pytest.mark.asyncio
async def test_updates_run_in_submission_order(store):
    seen = []

    async def append(label):
        await store.set(lambda s: seen.append(label))

    await asyncio.gather(*(append(i) for i in range(10)))
    assert seen == list(range(10))


@pytest.mark.asyncio
async def test_listeners_see_committed_states(store):
    sync_seen = []
    async_seen = []

    async def async_listener(state):
        async_seen.append(len(state.events))

    store.subscribe(lambda s: sync_seen.append(len(s.events)))
    unsubscribe = store.subscribe(async_listener)

    await store.set(lambda s: ops.delete_event(s, 0))
    unsubscribe()
    await store.set(lambda s: ops.delete_event(s, 0))

    assert sync_seen == [4, 3]
    assert async_seen == [4]


@pytest.mark.asyncio
async def test_listeners_not_called_on_rollback(store):
    calls = []
    store.subscribe(calls.append)

    def fail(state):
        raise RuntimeError

    with pytest.raises(RuntimeError):
        await store.set(fail)
    assert calls == []


@pytest.mark.asyncio
async def test_failing_listener_does_not_undo_commit(store):
    def broken(state):
        raise OSError("disk full")

    store.subscribe(broken)
    await store.set(lambda s: ops.delete_event(s, 0))
    assert len(store.state.events) == 4


@pytest.mark.asyncio
async def test_replace_installs_a_copy(store, story_state):
    other = story_state.model_copy(deep=True)
    other.events = other.events[:1]
    await store.replace(other)
    assert len(store.state.events) == 1
    assert store.state is not other


def test_snapshot_is_independent(store):
    snap = store.snapshot()
    ops.delete_event(snap, 0)
    assert len(store.state.events) == 5


def test_default_state_is_empty():
    assert StateStore().state.events == []

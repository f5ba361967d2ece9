"""Tests for commit event dispatch."""
import pytest

from mediadrop.utils.events import EventEmitter


@pytest.mark.asyncio
async def test_sync_and_async_listeners_run_in_order():
    emitter = EventEmitter()
    seen = []

    async def async_listener(value):
        seen.append(f"async:{value}")

    emitter.on("file_start", lambda value: seen.append(f"sync:{value}"))
    emitter.on("file_start", async_listener)

    await emitter.emit("file_start", "a.jpg")

    assert seen == ["sync:a.jpg", "async:a.jpg"]


@pytest.mark.asyncio
async def test_duplicate_subscription_is_ignored():
    emitter = EventEmitter()
    seen = []
    emitter.on("link_created", seen.append)
    emitter.on("link_created", seen.append)

    await emitter.emit("link_created", "tok")

    assert seen == ["tok"]


@pytest.mark.asyncio
async def test_failing_listener_is_skipped():
    emitter = EventEmitter()
    seen = []

    def broken(value):
        raise ValueError("boom")

    emitter.on("commit_complete", broken)
    emitter.on("commit_complete", seen.append)

    await emitter.emit("commit_complete", "link")
    await emitter.emit("unknown_event", "ignored")

    assert seen == ["link"]

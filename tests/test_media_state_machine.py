"""Tests for the media state machine and the fake media resource."""

from __future__ import annotations

import asyncio

import pytest

from clipmap.services.fake_media import FakeMediaResource
from clipmap.services.media_resource import (
    LIFECYCLE_SIGNALS,
    LifecycleEvent,
    MediaStateMachine,
    PlayRejected,
)


def _run(coro):
    return asyncio.run(coro)


@pytest.mark.parametrize(
    ("signal", "expected"),
    [
        ("load", "buffering"),
        ("rejected", "idle"),
        ("playing", "playing"),
        ("pause", "paused"),
        ("error", "errored"),
        ("stalled", "buffering"),
        ("abort", "idle"),
        ("ended", "ended"),
    ],
)
def test_signal_targets(signal, expected) -> None:
    machine = MediaStateMachine(initial="playing")
    assert machine.apply(signal) == expected
    assert machine.state == expected


def test_state_follows_most_recent_signal() -> None:
    machine = MediaStateMachine()
    for signal in ("load", "playing", "pause", "playing", "ended", "load"):
        machine.apply(signal)
    assert machine.state == "buffering"


def test_unknown_signal_raises() -> None:
    machine = MediaStateMachine()
    with pytest.raises(ValueError):
        machine.apply("seeked")  # type: ignore[arg-type]
    assert machine.state == "idle"


def test_every_lifecycle_signal_is_mapped() -> None:
    machine = MediaStateMachine()
    for signal in LIFECYCLE_SIGNALS:
        machine.apply(signal)


def test_fake_play_without_source_is_rejected() -> None:
    async def run() -> None:
        resource = FakeMediaResource()
        with pytest.raises(PlayRejected):
            await resource.play()
        assert resource.playback_state == "idle"

    _run(run())


def test_fake_play_emits_playing_to_handler() -> None:
    events: list[LifecycleEvent] = []

    async def handler(event: LifecycleEvent) -> None:
        events.append(event)

    async def run() -> None:
        resource = FakeMediaResource()
        resource.set_event_handler(handler)
        resource.load("https://cdn.example/a.mp3")
        assert resource.playback_state == "buffering"
        await resource.play()
        assert resource.playback_state == "playing"

    _run(run())
    assert events == [LifecycleEvent("playing", "https://cdn.example/a.mp3")]


def test_fake_failing_url_emits_error_then_rejects() -> None:
    events: list[str] = []

    async def handler(event: LifecycleEvent) -> None:
        events.append(event.signal)

    async def run() -> None:
        resource = FakeMediaResource(failing_urls=["bad.mp3"])
        resource.set_event_handler(handler)
        resource.load("bad.mp3")
        with pytest.raises(PlayRejected):
            await resource.play()
        assert resource.playback_state == "errored"

    _run(run())
    assert events == ["error"]


def test_fake_held_attempts_resolve_in_order() -> None:
    async def run() -> None:
        resource = FakeMediaResource(hold_attempts=True)
        resource.load("a.mp3")
        first = asyncio.create_task(resource.play())
        second = asyncio.create_task(resource.play())
        await asyncio.sleep(0)
        assert resource.pending_attempts == 2

        resource.reject_attempt()
        resource.resolve_attempt()
        with pytest.raises(PlayRejected):
            await first
        await second
        assert resource.pending_attempts == 0
        assert resource.playback_state == "idle"

    _run(run())


def test_fake_shutdown_cancels_held_attempts() -> None:
    async def run() -> None:
        resource = FakeMediaResource(hold_attempts=True)
        resource.load("a.mp3")
        task = asyncio.create_task(resource.play())
        await asyncio.sleep(0)
        await resource.shutdown()
        with pytest.raises(asyncio.CancelledError):
            await task

    _run(run())


def test_fake_pause_emits_only_when_active() -> None:
    signals: list[str] = []

    async def handler(event: LifecycleEvent) -> None:
        signals.append(event.signal)

    async def run() -> None:
        resource = FakeMediaResource()
        resource.set_event_handler(handler)
        resource.pause()
        await asyncio.sleep(0)
        assert signals == []
        resource.load("a.mp3")
        await resource.play()
        resource.pause()
        await asyncio.sleep(0)
        assert resource.playback_state == "paused"
        assert resource.pause_count == 2

    _run(run())
    assert signals == ["playing", "pause"]

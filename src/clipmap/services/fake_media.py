"""Fake media resource for deterministic testing and the `fake` backend."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from contextlib import suppress

from .media_resource import (
    LifecycleEvent,
    LifecycleSignal,
    MediaStateMachine,
    PlaybackState,
    PlayRejected,
    PreloadPolicy,
)


class FakeMediaResource:
    """In-memory media resource with scriptable play acknowledgments.

    By default every play attempt succeeds and is followed by a ``playing``
    event. ``autoplay_allowed=False`` rejects attempts, ``failing_urls`` emit
    ``error`` and reject, and ``hold_attempts=True`` parks each attempt until
    `resolve_attempt` or `reject_attempt` is called.
    """

    def __init__(
        self,
        *,
        autoplay_allowed: bool = True,
        auto_playing: bool = True,
        hold_attempts: bool = False,
        failing_urls: Iterable[str] = (),
    ) -> None:
        self.autoplay_allowed = autoplay_allowed
        self.auto_playing = auto_playing
        self.hold_attempts = hold_attempts
        self.failing_urls = set(failing_urls)
        self.preload: PreloadPolicy = "none"
        self.load_count = 0
        self.pause_count = 0
        self.play_count = 0
        self._machine = MediaStateMachine()
        self._source_url: str | None = None
        self._handler: Callable[[LifecycleEvent], Awaitable[None]] | None = None
        self._pending: list[asyncio.Future[None]] = []
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def current_source_url(self) -> str | None:
        return self._source_url

    @property
    def playback_state(self) -> PlaybackState:
        return self._machine.state

    @property
    def pending_attempts(self) -> int:
        return len(self._pending)

    def set_event_handler(
        self, handler: Callable[[LifecycleEvent], Awaitable[None]]
    ) -> None:
        self._handler = handler

    async def start(self) -> None:
        return None

    async def shutdown(self) -> None:
        while self._pending:
            self._pending.pop(0).cancel()
        for task in list(self._tasks):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()

    def load(self, url: str) -> None:
        self._source_url = url
        self.load_count += 1
        self._machine.apply("load")

    def pause(self) -> None:
        self.pause_count += 1
        if self._machine.state not in {"playing", "buffering"}:
            return
        self._emit_soon(LifecycleEvent("pause", self._source_url))

    async def play(self) -> None:
        self.play_count += 1
        url = self._source_url
        if url is None:
            self._machine.apply("rejected")
            raise PlayRejected("No media source assigned.")
        if self.hold_attempts:
            future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._pending.append(future)
            try:
                await future
            except PlayRejected:
                self._machine.apply("rejected")
                raise
            return
        await asyncio.sleep(0)
        if not self.autoplay_allowed:
            self._machine.apply("rejected")
            raise PlayRejected("play() requires a user gesture.")
        if url in self.failing_urls:
            await self.emit("error", detail="unsupported media")
            raise PlayRejected(f"Media at {url} could not be decoded.")
        if self.auto_playing:
            await self.emit("playing")

    def resolve_attempt(self) -> None:
        """Acknowledge the oldest held play attempt as successful."""
        self._pending.pop(0).set_result(None)

    def reject_attempt(self, message: str = "play() requires a user gesture.") -> None:
        """Reject the oldest held play attempt."""
        self._pending.pop(0).set_exception(PlayRejected(message))

    async def emit(self, signal: LifecycleSignal, *, detail: str | None = None) -> None:
        """Fire a lifecycle event as the media runtime would."""
        await self._emit(LifecycleEvent(signal, self._source_url, detail))

    def _emit_soon(self, event: LifecycleEvent) -> None:
        task = asyncio.get_running_loop().create_task(self._emit(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _emit(self, event: LifecycleEvent) -> None:
        self._machine.apply(event.signal)
        if self._handler is None:
            return
        await self._handler(event)

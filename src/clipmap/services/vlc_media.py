"""VLC media resource using python-vlc."""

from __future__ import annotations

import asyncio
import queue
import threading
import time
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any, cast

from .media_resource import (
    LifecycleEvent,
    LifecycleSignal,
    MediaStateMachine,
    MediaUnavailable,
    PlaybackState,
    PlayRejected,
    PreloadPolicy,
)

DEFAULT_STALL_TIMEOUT_S = 8.0


@dataclass
class _Command:
    name: str
    args: tuple[Any, ...]
    future: asyncio.Future[Any] | None


@dataclass
class _PollTracker:
    """Turns polled libVLC state names into lifecycle signals."""

    stall_timeout_s: float
    last_signal: LifecycleSignal | None = None
    buffering_since: float | None = None
    stall_reported: bool = False
    # "stopped" only means an aborted load once opening was observed.
    saw_opening: bool = False

    def reset(self) -> None:
        self.last_signal = None
        self.buffering_since = None
        self.stall_reported = False
        self.saw_opening = False

    def observe(self, state_name: str, now: float) -> LifecycleSignal | None:
        if state_name in {"opening", "buffering"}:
            self.saw_opening = True
            if self.buffering_since is None:
                self.buffering_since = now
            waited = now - self.buffering_since
            if not self.stall_reported and waited >= self.stall_timeout_s:
                self.stall_reported = True
                return "stalled"
            return None
        self.buffering_since = None
        self.stall_reported = False
        signal = _map_signal(state_name)
        if signal == "abort" and not self.saw_opening:
            return None
        if signal is not None:
            self.saw_opening = False
        if signal is None or signal == self.last_signal:
            return None
        self.last_signal = signal
        return signal


class VLCMediaResource:
    """Media resource backed by a dedicated VLC thread.

    libVLC only fetches media once playback starts, so ``preload`` is recorded
    but has no effect on buffering.
    """

    def __init__(
        self,
        *,
        poll_interval_ms: int = 200,
        stall_timeout_s: float = DEFAULT_STALL_TIMEOUT_S,
    ) -> None:
        self.preload: PreloadPolicy = "none"
        self._poll_interval = poll_interval_ms / 1000
        self._stall_timeout_s = stall_timeout_s
        self._machine = MediaStateMachine()
        self._source_url: str | None = None
        self._handler: Callable[[LifecycleEvent], Awaitable[None]] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: queue.Queue[_Command] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def current_source_url(self) -> str | None:
        return self._source_url

    @property
    def playback_state(self) -> PlaybackState:
        return self._machine.state

    def set_event_handler(
        self, handler: Callable[[LifecycleEvent], Awaitable[None]]
    ) -> None:
        self._handler = handler

    async def start(self) -> None:
        if self._thread is not None:
            return
        self._loop = asyncio.get_running_loop()
        ready_future: asyncio.Future[None] = self._loop.create_future()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._thread_main,
            args=(ready_future,),
            name="VLCMediaThread",
            daemon=True,
        )
        self._thread.start()
        await ready_future

    async def shutdown(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._queue.put(_Command("wake", (), None))
        self._thread.join(timeout=2.0)
        self._thread = None

    def load(self, url: str) -> None:
        self._require_started()
        self._source_url = url
        self._machine.apply("load")
        self._queue.put(_Command("load", (url,), None))

    def pause(self) -> None:
        self._require_started()
        self._queue.put(_Command("pause", (), None))

    async def play(self) -> None:
        started = await self._submit("play")
        if not started:
            self._machine.apply("rejected")
            raise PlayRejected(f"libVLC refused to play {self._source_url}")

    def _require_started(self) -> None:
        if self._loop is None or self._thread is None:
            raise MediaUnavailable("VLC media resource not started.")

    async def _submit(self, name: str, *args: Any) -> Any:
        self._require_started()
        assert self._loop is not None
        future: asyncio.Future[Any] = self._loop.create_future()
        self._queue.put(_Command(name, args, future))
        return await future

    def _thread_main(self, ready_future: asyncio.Future[None]) -> None:
        try:
            import vlc

            instance = vlc.Instance()
            player = instance.media_player_new()
        except Exception as exc:  # pragma: no cover - depends on VLC install
            self._notify_future_exception(
                ready_future,
                MediaUnavailable(
                    "VLC media resource unavailable. Ensure VLC/libVLC is installed."
                ),
            )
            self._emit_event(LifecycleEvent("error", None, str(exc)))
            return

        self._notify_future_result(ready_future, None)
        tracker = _PollTracker(self._stall_timeout_s)

        while not self._stop_event.is_set():
            try:
                cmd = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                cmd = None

            if cmd is not None and cmd.name != "wake":
                try:
                    result = self._handle_command(cmd, instance, player)
                    self._notify_future_result(cmd.future, result)
                except Exception as exc:  # pragma: no cover - backend safety net
                    self._notify_future_exception(cmd.future, exc)
                    self._emit_event(
                        LifecycleEvent("error", self._source_url, str(exc))
                    )
                if cmd.name in {"load", "play"}:
                    tracker.reset()

            signal = tracker.observe(_state_name(player), time.monotonic())
            if signal is not None:
                self._emit_event(LifecycleEvent(signal, self._source_url))

        player.stop()

    def _handle_command(self, cmd: _Command, instance: Any, player: Any) -> Any:
        name = cmd.name
        if name == "load":
            (url,) = cmd.args
            if "://" in url:
                media = instance.media_new(url)
            else:
                media = instance.media_new_path(url)
            player.set_media(media)
            return None
        if name == "pause":
            player.set_pause(1)
            return None
        if name == "play":
            return player.play() == 0
        raise ValueError(f"Unknown command {name}")

    def _emit_event(self, event: LifecycleEvent) -> None:
        if self._loop is None:
            return
        asyncio.run_coroutine_threadsafe(
            cast(Coroutine[Any, Any, None], self._deliver(event)), self._loop
        )

    async def _deliver(self, event: LifecycleEvent) -> None:
        self._machine.apply(event.signal)
        if self._handler is None:
            return
        await self._handler(event)

    def _notify_future_result(
        self, future: asyncio.Future[Any] | None, value: Any
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._resolve_future_result, future, value)

    def _notify_future_exception(
        self, future: asyncio.Future[Any] | None, exc: Exception
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._resolve_future_exception, future, exc)

    @staticmethod
    def _resolve_future_result(future: asyncio.Future[Any], value: Any) -> None:
        if not future.done():
            future.set_result(value)

    @staticmethod
    def _resolve_future_exception(
        future: asyncio.Future[Any], exc: Exception
    ) -> None:
        if not future.done():
            future.set_exception(exc)


def _state_name(player: Any) -> str:
    try:
        state = player.get_state()
    except Exception:
        return "error"
    return str(getattr(state, "name", "")).lower()


def _map_signal(state_name: str) -> LifecycleSignal | None:
    if state_name == "playing":
        return "playing"
    if state_name == "paused":
        return "pause"
    if state_name == "ended":
        return "ended"
    if state_name == "error":
        return "error"
    if state_name == "stopped":
        return "abort"
    return None

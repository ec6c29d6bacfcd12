"""Shared media resource contract, lifecycle events and state machine.

`PlaybackCoordinator` drives exactly one object implementing `MediaResource`.
Concrete implementations (fake/VLC) translate engine behavior into the shared
lifecycle signals below and keep `playback_state` in step through a
`MediaStateMachine`.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

PlaybackState = Literal["idle", "buffering", "playing", "paused", "ended", "errored"]
LifecycleSignal = Literal["playing", "pause", "error", "stalled", "abort", "ended"]
ControlSignal = Literal["load", "rejected"]
PreloadPolicy = Literal["none", "auto"]

LIFECYCLE_SIGNALS: tuple[LifecycleSignal, ...] = (
    "playing",
    "pause",
    "error",
    "stalled",
    "abort",
    "ended",
)

# Every signal names its target state outright, so the current state is always
# the one implied by the most recent signal.
_SIGNAL_TARGETS: dict[str, PlaybackState] = {
    "load": "buffering",
    "rejected": "idle",
    "playing": "playing",
    "pause": "paused",
    "error": "errored",
    "stalled": "buffering",
    "abort": "idle",
    "ended": "ended",
}


class MediaResourceError(Exception):
    """Base error for shared media resource failures."""


class PlayRejected(MediaResourceError):
    """The play attempt was refused (e.g. a user gesture is required)."""


class MediaUnavailable(MediaResourceError):
    """The media runtime is missing or was not started."""


@dataclass(frozen=True)
class LifecycleEvent:
    """Notification emitted by the media resource about its own transition."""

    signal: LifecycleSignal
    source_url: str | None = None
    detail: str | None = None


class MediaStateMachine:
    """Finite-state machine over `PlaybackState` driven by named signals."""

    def __init__(self, initial: PlaybackState = "idle") -> None:
        self._state: PlaybackState = initial

    @property
    def state(self) -> PlaybackState:
        return self._state

    def apply(self, signal: LifecycleSignal | ControlSignal) -> PlaybackState:
        """Move to the state named by `signal` and return it."""
        try:
            target = _SIGNAL_TARGETS[signal]
        except KeyError:
            raise ValueError(f"Unknown media signal {signal!r}") from None
        previous = self._state
        self._state = target
        if previous != target:
            logger.debug("Media state %s -> %s on %s", previous, target, signal)
        return target


class MediaResource(Protocol):
    """Single shared audio output consumed by `PlaybackCoordinator`."""

    preload: PreloadPolicy

    @property
    def current_source_url(self) -> str | None: ...

    @property
    def playback_state(self) -> PlaybackState: ...

    def set_event_handler(
        self, handler: Callable[[LifecycleEvent], Awaitable[None]]
    ) -> None: ...

    async def start(self) -> None: ...

    async def shutdown(self) -> None: ...

    def load(self, url: str) -> None: ...

    def pause(self) -> None: ...

    async def play(self) -> None: ...

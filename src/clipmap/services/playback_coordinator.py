"""Playback request coordination against the single shared media resource.

`PlaybackCoordinator` is the only writer of the media resource. A request
claims the loading indicator, loads or resumes the source and schedules the
play attempt. The indicator is then released by whichever signal arrives
first: a rejected attempt, or a lifecycle event from the resource.

Requests are not tagged with an identity. When request A is superseded by B,
A's late rejection or the resource's events for A's load still act on the
indicator state current at that time, which can clear B's indicator early.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass

from clipmap.services.loading_indicator import LoadingIndicatorManager
from clipmap.services.media_resource import (
    LifecycleEvent,
    MediaResource,
    PlayRejected,
)

logger = logging.getLogger(__name__)

# States in which the pause control pauses instead of resuming.
PAUSABLE_STATES = frozenset({"playing", "buffering"})


@dataclass(frozen=True)
class PlaybackRequest:
    """One play invocation; handed to its attempt task, never retained."""

    target_url: str
    trigger: Hashable | None
    issued_at: float


class PlaybackCoordinator:
    """Drives the media resource and the loading indicator around play requests."""

    def __init__(
        self, *, resource: MediaResource, indicators: LoadingIndicatorManager
    ) -> None:
        self._resource = resource
        self._indicators = indicators
        self._attempts: set[asyncio.Task[None]] = set()
        self._listeners: list[Callable[[LifecycleEvent], None]] = []
        self._resource.set_event_handler(self._handle_lifecycle_event)

    @property
    def resource(self) -> MediaResource:
        return self._resource

    @property
    def indicators(self) -> LoadingIndicatorManager:
        return self._indicators

    def subscribe(self, listener: Callable[[LifecycleEvent], None]) -> None:
        """Observe lifecycle events after indicator handling."""
        self._listeners.append(listener)

    async def start(self) -> None:
        await self._resource.start()

    async def shutdown(self) -> None:
        """Cancel outstanding attempts and stop the resource."""
        for task in list(self._attempts):
            task.cancel()
        if self._attempts:
            await asyncio.gather(*self._attempts, return_exceptions=True)
        self._attempts.clear()
        await self._resource.shutdown()

    def play_url(
        self, trigger: Hashable | None, url: str
    ) -> asyncio.Task[None] | None:
        """Start or resume `url`, showing the loading indicator on `trigger`.

        Returns the task carrying the play attempt acknowledgment, or None when
        the resource refused the source before an attempt could be made.
        """
        active = self._indicators.active
        if active is not None and active != trigger:
            self._indicators.hide(active)
        self._indicators.show(trigger)

        try:
            self._resource.preload = "auto"
            if url == self._resource.current_source_url:
                logger.debug("Resuming loaded source", extra={"url": url})
            else:
                try:
                    self._resource.pause()
                except Exception as exc:
                    logger.debug("Best-effort pause before load failed: %s", exc)
                self._resource.load(url)
                logger.info("Loading source", extra={"url": url})
        except Exception as exc:
            logger.error("Could not load source: %s", exc, extra={"url": url})
            self._indicators.hide(trigger)
            return None

        request = PlaybackRequest(
            target_url=url, trigger=trigger, issued_at=time.monotonic()
        )
        task = asyncio.get_running_loop().create_task(self._attempt(request))
        self._attempts.add(task)
        task.add_done_callback(self._attempts.discard)
        return task

    def toggle_pause(
        self, trigger: Hashable | None = None
    ) -> asyncio.Task[None] | None:
        """Pause while playing or buffering; otherwise resume the current source."""
        if self._resource.playback_state in PAUSABLE_STATES:
            self._resource.pause()
            return None
        url = self._resource.current_source_url
        if url is None:
            return None
        return self.play_url(trigger, url)

    async def _attempt(self, request: PlaybackRequest) -> None:
        try:
            await self._resource.play()
        except asyncio.CancelledError:
            raise
        except PlayRejected as exc:
            logger.warning(
                "Play attempt rejected; a new user action is required: %s",
                exc,
                extra={"url": request.target_url},
            )
            self._indicators.hide(request.trigger)
        except Exception as exc:
            logger.warning(
                "Play attempt failed: %s", exc, extra={"url": request.target_url}
            )
            self._indicators.hide(request.trigger)
        else:
            # Resolution can precede audible output; "playing" clears the indicator.
            logger.debug(
                "Play attempt acknowledged after %.3fs",
                time.monotonic() - request.issued_at,
                extra={"url": request.target_url},
            )

    async def _handle_lifecycle_event(self, event: LifecycleEvent) -> None:
        signal = event.signal
        if signal == "playing":
            self._indicators.clear_active()
            self._resource.preload = "auto"
            logger.debug("Playback started", extra={"url": event.source_url})
        elif signal == "error":
            logger.warning(
                "Media resource error: %s",
                event.detail or "unknown",
                extra={"url": event.source_url},
            )
            self._indicators.clear_active()
        elif signal in {"stalled", "abort"}:
            logger.info("Media load %s", signal, extra={"url": event.source_url})
            self._indicators.clear_active()
        elif signal == "ended":
            logger.debug("Playback ended", extra={"url": event.source_url})
            self._indicators.clear_active()
        for listener in self._listeners:
            listener(event)

"""Entry point shared by every playback trigger surface.

`PlaybackSession` keeps the mini-player "now playing" fields and hands the
actual request to `PlaybackCoordinator`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, replace

from clipmap.events import NowPlayingChanged
from clipmap.runtime_config import DEFAULT_PROXY_PREFIX
from clipmap.services.clip_catalog import ClipRecord, format_clip_meta
from clipmap.services.media_resource import LifecycleEvent, MediaResource
from clipmap.services.playback_coordinator import (
    PAUSABLE_STATES,
    PlaybackCoordinator,
)
from clipmap.services.url_canonicalizer import canonicalize

logger = logging.getLogger(__name__)

GENERIC_TITLE = "Now playing"
LABEL_PAUSE = "Pause"
LABEL_RESUME = "Resume"
LABEL_REPLAY = "Replay"
LABEL_PLAY = "Play"


@dataclass(frozen=True)
class NowPlaying:
    """Mini-player presentation fields."""

    title: str = ""
    meta: str = ""
    visible: bool = False
    control_label: str = LABEL_PLAY
    url: str | None = None


class PlaybackSession:
    """Resolves display metadata, updates the mini-player and delegates playback."""

    def __init__(
        self,
        *,
        coordinator: PlaybackCoordinator | None,
        resource: MediaResource,
        clips: Iterable[ClipRecord] = (),
        mini_player_trigger: Hashable | None = None,
        proxy_prefix: str = DEFAULT_PROXY_PREFIX,
        on_change: Callable[[NowPlayingChanged], None] | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._resource = resource
        self._clips: tuple[ClipRecord, ...] = tuple(clips)
        self._proxy_prefix = proxy_prefix
        self._on_change = on_change
        self._degraded_tasks: set[asyncio.Task[None]] = set()
        self.mini_player_trigger = mini_player_trigger
        self._now_playing = NowPlaying()
        if coordinator is not None:
            coordinator.subscribe(self._handle_lifecycle_event)

    @property
    def now_playing(self) -> NowPlaying:
        return self._now_playing

    @property
    def clips(self) -> tuple[ClipRecord, ...]:
        return self._clips

    def set_clips(self, clips: Iterable[ClipRecord]) -> None:
        self._clips = tuple(clips)

    def canonical_url(self, url: str) -> str:
        return canonicalize(url, proxy_prefix=self._proxy_prefix)

    def find_clip(self, url: str) -> ClipRecord | None:
        """Return the clip whose canonical link equals `url`, if any."""
        for clip in self._clips:
            if clip.raw_link and self.canonical_url(clip.raw_link) == url:
                return clip
        return None

    def start_playback(
        self,
        url: str,
        meta: dict[str, str] | None = None,
        trigger: Hashable | None = None,
    ) -> asyncio.Task[None] | None:
        """Update the mini-player and request playback of `url`."""
        url = self.canonical_url(url)
        title = (meta or {}).get("title") or ""
        meta_line = (meta or {}).get("meta") or ""
        if not title or not meta_line:
            clip = self.find_clip(url)
            if clip is not None:
                title = title or clip.title
                meta_line = meta_line or format_clip_meta(clip)
            elif not title:
                logger.debug("No catalog entry for url", extra={"url": url})
        self._update(
            NowPlaying(
                title=title or GENERIC_TITLE,
                meta=meta_line,
                visible=True,
                control_label=LABEL_PAUSE,
                url=url,
            )
        )
        if trigger is None:
            trigger = self.mini_player_trigger
        return self._delegate(trigger, url)

    def play_clip(
        self, clip: ClipRecord, trigger: Hashable | None = None
    ) -> asyncio.Task[None] | None:
        """Play a catalog record; the meta line shows date and duration only."""
        return self.start_playback(
            clip.raw_link,
            {"title": clip.title, "meta": format_clip_meta(clip, include_time=False)},
            trigger,
        )

    def toggle_pause(self) -> asyncio.Task[None] | None:
        """Mini-player control: pause while playing or buffering, otherwise resume."""
        if self._coordinator is None or self._now_playing.url is None:
            return None
        if self._resource.playback_state in PAUSABLE_STATES:
            self._coordinator.toggle_pause(self.mini_player_trigger)
            self._update(replace(self._now_playing, control_label=LABEL_RESUME))
            return None
        self._update(replace(self._now_playing, control_label=LABEL_PAUSE))
        return self._coordinator.play_url(
            self.mini_player_trigger, self._now_playing.url
        )

    def _delegate(
        self, trigger: Hashable | None, url: str
    ) -> asyncio.Task[None] | None:
        if self._coordinator is not None:
            return self._coordinator.play_url(trigger, url)
        logger.warning("Playback coordinator unavailable; playing without indicators")
        try:
            self._resource.load(url)
        except Exception as exc:
            logger.error("Could not load source: %s", exc, extra={"url": url})
            return None
        task = asyncio.get_running_loop().create_task(self._play_degraded(url))
        self._degraded_tasks.add(task)
        task.add_done_callback(self._degraded_tasks.discard)
        return task

    async def _play_degraded(self, url: str) -> None:
        try:
            await self._resource.play()
        except Exception as exc:
            logger.debug("Ignoring rejected play attempt: %s", exc, extra={"url": url})

    def _handle_lifecycle_event(self, event: LifecycleEvent) -> None:
        if event.signal == "ended" and self._now_playing.visible:
            self._update(replace(self._now_playing, control_label=LABEL_REPLAY))

    def _update(self, now_playing: NowPlaying) -> None:
        self._now_playing = now_playing
        if self._on_change is not None:
            self._on_change(NowPlayingChanged(now_playing))

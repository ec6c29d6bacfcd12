"""Textual TUI app for clipmap."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from textual.app import App, ComposeResult
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Static

from . import __version__
from .events import (
    AmbientIndicatorChanged,
    ClipPlayRequested,
    NowPlayingChanged,
    TriggerIndicatorChanged,
)
from .logging_utils import setup_logging
from .paths import log_dir, settings_path
from .runtime_config import (
    BACKEND_NAMES,
    normalize_proxy_prefix,
    resolve_backend_name,
    resolve_log_level,
)
from .services.clip_catalog import (
    CatalogError,
    ClipRecord,
    filter_by_category,
    latest_clips,
    load_catalog,
    search_clips,
    unique_categories,
)
from .services.fake_media import FakeMediaResource
from .services.loading_indicator import IndicatorEvent, LoadingIndicatorManager
from .services.playback_coordinator import PlaybackCoordinator
from .services.playback_session import PlaybackSession
from .services.vlc_media import VLCMediaResource
from .state_store import AppSettings, load_settings, save_settings
from .ui.clip_list import ClipList
from .ui.mini_player import MiniPlayer, MiniPlayerToggle
from .ui.modals.error import ErrorModal
from .ui.text_button import LoadingButton
from .utils.async_utils import run_blocking
from .version import build_help_epilog

logger = logging.getLogger(__name__)
LATEST_COUNT = 3


class ClipmapApp(App):
    TITLE = "clipmap"
    CSS = """
    Screen {
        layout: vertical;
    }

    #search {
        height: 3;
    }

    #category-tags {
        height: auto;
        padding: 0 1;
        color: $text-muted;
    }

    .section-heading {
        height: 1;
        text-style: bold;
        padding: 0 1;
    }

    #latest-clips {
        height: auto;
        max-height: 40%;
    }

    #clip-list {
        height: 1fr;
    }

    ModalScreen {
        align: center middle;
    }

    #modal-body {
        padding: 1 2;
        border: solid white;
        width: 60%;
        height: auto;
    }

    #modal-title {
        text-style: bold;
    }
    """
    BINDINGS = [
        ("escape", "dismiss_modal", "Dismiss"),
        ("/", "focus_search", "Search"),
        ("space", "toggle_play", "Play/Pause"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        auto_init: bool = True,
        backend_name: str | None = None,
        catalog_source: str | None = None,
        category: str | None = None,
        proxy_prefix: str | None = None,
    ) -> None:
        super().__init__()
        self.settings = AppSettings()
        self.clips: list[ClipRecord] = []
        self.categories: list[str] = []
        self.indicators = LoadingIndicatorManager(
            on_change=self._handle_indicator_event
        )
        self.coordinator: PlaybackCoordinator | None = None
        self.session: PlaybackSession | None = None
        self.startup_failed = False
        self._auto_init = auto_init
        self._backend_name = backend_name
        self._catalog_source = catalog_source
        self._category = category
        self._proxy_prefix = proxy_prefix

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(placeholder="Search title, description or date", id="search")
        yield Static("", id="category-tags", markup=False)
        yield Static("Latest clips", classes="section-heading")
        yield ClipList(id="latest-clips")
        yield Static("All clips", classes="section-heading")
        yield ClipList(id="clip-list")
        yield MiniPlayer(id="mini-player")
        yield Footer()

    def on_mount(self) -> None:
        if self._auto_init:
            asyncio.create_task(self._initialize_state())

    async def _initialize_state(self) -> None:
        try:
            self.settings = self._apply_overrides(
                await run_blocking(load_settings, settings_path())
            )
            await run_blocking(save_settings, settings_path(), self.settings)
            await self._start_playback(self.settings.playback_backend)
            await self._load_clips()
        except Exception as exc:
            self.startup_failed = True
            logger.exception("Failed to initialize app: %s", exc)
            await self.push_screen(
                ErrorModal(
                    "Failed to initialize app.\n"
                    "Likely cause: settings/backend startup failure.\n"
                    "Next step: verify file permissions/paths and review the log file."
                )
            )

    def _apply_overrides(self, settings: AppSettings) -> AppSettings:
        backend = resolve_backend_name(self._backend_name, settings.playback_backend)
        settings = replace(settings, playback_backend=backend)
        if self._catalog_source is not None:
            settings = replace(settings, catalog_source=self._catalog_source)
        if self._category is not None:
            settings = replace(settings, category=self._category)
        if self._proxy_prefix is not None:
            settings = replace(
                settings, proxy_prefix=normalize_proxy_prefix(self._proxy_prefix)
            )
        return settings

    async def _start_playback(self, backend_name: str) -> None:
        coordinator = PlaybackCoordinator(
            resource=_build_resource(backend_name), indicators=self.indicators
        )
        try:
            await coordinator.start()
        except Exception as exc:
            if backend_name == "fake":
                raise
            logger.exception("Failed to start backend %s: %s", backend_name, exc)
            coordinator = PlaybackCoordinator(
                resource=_build_resource("fake"), indicators=self.indicators
            )
            await coordinator.start()
            self.settings = replace(self.settings, playback_backend="fake")
            await self.push_screen(
                ErrorModal(
                    "VLC backend unavailable; using fake backend.\n"
                    "Cause: VLC/libVLC runtime is not available.\n"
                    "Next step: install VLC/libVLC, then restart with --backend vlc.",
                    title="Playback backend",
                )
            )
        self.coordinator = coordinator
        mini_player = self.query_one(MiniPlayer)
        self.session = PlaybackSession(
            coordinator=coordinator,
            resource=coordinator.resource,
            mini_player_trigger=mini_player.play_button,
            proxy_prefix=self.settings.proxy_prefix,
            on_change=self._handle_now_playing,
        )

    async def _load_clips(self) -> None:
        source = self.settings.catalog_source
        if source is None:
            logger.info("No catalog source configured")
            await self._render_clips()
            return
        try:
            clips = await load_catalog(source)
        except CatalogError as exc:
            logger.warning("Catalog unavailable: %s", exc)
            await self._render_clips()
            await self.push_screen(
                ErrorModal(
                    "Could not load the clip catalog.\n"
                    f"Details: {exc}\n"
                    "Next step: check the --catalog path or URL and retry.",
                    title="Catalog",
                )
            )
            return
        # Sheet rows are appended over time; list the most recent rows first.
        self.clips = list(reversed(filter_by_category(clips, self.settings.category)))
        self.categories = unique_categories(self.clips)
        self.query_one("#category-tags", Static).update(
            "Categories: " + ", ".join(self.categories) if self.categories else ""
        )
        if self.session is not None:
            self.session.set_clips(self.clips)
        await self._render_clips()

    async def _render_clips(self, query: str = "") -> None:
        visible = search_clips(self.clips, query)
        await self.query_one("#latest-clips", ClipList).set_clips(
            latest_clips(self.clips, LATEST_COUNT)
        )
        await self.query_one("#clip-list", ClipList).set_clips(visible)

    async def on_unmount(self) -> None:
        if self.coordinator is not None:
            await self.coordinator.shutdown()

    def action_dismiss_modal(self) -> None:
        if isinstance(self.screen, ModalScreen):
            self.pop_screen()

    def action_focus_search(self) -> None:
        self.query_one("#search", Input).focus()

    def action_toggle_play(self) -> None:
        if self.session is not None:
            self.session.toggle_pause()

    def on_clip_play_requested(self, event: ClipPlayRequested) -> None:
        event.stop()
        if self.session is None:
            logger.warning("Playback requested before startup completed")
            return
        self.session.play_clip(event.clip, event.trigger)

    def on_mini_player_toggle(self, event: MiniPlayerToggle) -> None:
        event.stop()
        self.action_toggle_play()

    async def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "search":
            return
        await self.query_one("#clip-list", ClipList).set_clips(
            search_clips(self.clips, event.value)
        )

    def _handle_indicator_event(self, event: IndicatorEvent) -> None:
        if isinstance(event, TriggerIndicatorChanged):
            if isinstance(event.trigger, LoadingButton):
                event.trigger.set_loading(event.loading)
        elif isinstance(event, AmbientIndicatorChanged):
            self.query_one(MiniPlayer).set_ambient(event.active)

    def _handle_now_playing(self, event: NowPlayingChanged) -> None:
        self.query_one(MiniPlayer).update_now_playing(event.now_playing)


def _build_resource(name: str) -> FakeMediaResource | VLCMediaResource:
    logger.info("Playback backend selected: %s", name)
    if name == "vlc":
        return VLCMediaResource()
    return FakeMediaResource()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipmap",
        description="Browse and play geolocated audio clips.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--backend",
        choices=BACKEND_NAMES,
        help="Playback backend to use (fake or vlc).",
    )
    parser.add_argument("--catalog", help="Catalog TSV file path or http(s) URL.")
    parser.add_argument("--category", help="Only list clips tagged with CATEGORY.")
    parser.add_argument(
        "--proxy-prefix",
        help="CORS proxy prefix for shared-storage links (empty disables).",
    )
    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        logging.getLogger(__name__).info("Starting clipmap TUI")
        app = ClipmapApp(
            backend_name=args.backend,
            catalog_source=args.catalog,
            category=args.category,
            proxy_prefix=args.proxy_prefix,
        )
        app.run()
        return 1 if getattr(app, "startup_failed", False) else 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logging.getLogger(__name__).exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Verify backend/settings/log paths and re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

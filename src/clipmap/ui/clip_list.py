"""Clip cards and the scrollable clip list."""

from __future__ import annotations

from collections.abc import Sequence

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.widget import Widget
from textual.widgets import Static

from clipmap.events import ClipPlayRequested
from clipmap.services.clip_catalog import ClipRecord, format_clip_meta
from clipmap.ui.text_button import LoadingButton, TextButtonPressed

PLAY_LABEL = "> Listen"


class ClipCard(Widget):
    DEFAULT_CSS = """
    ClipCard {
        height: auto;
        padding: 0 1;
        margin-bottom: 1;
        border: round $panel-lighten-2;
    }

    ClipCard .clip-title {
        text-style: bold;
    }

    ClipCard .clip-controls {
        height: 1;
    }

    ClipCard .clip-meta {
        color: $text-muted;
    }
    """

    def __init__(self, clip: ClipRecord, **kwargs) -> None:
        super().__init__(**kwargs)
        self.clip = clip
        self.play_button = LoadingButton(PLAY_LABEL, action="play")

    def compose(self) -> ComposeResult:
        yield Static(self.clip.title, classes="clip-title", markup=False)
        yield Static(format_clip_meta(self.clip), classes="clip-meta", markup=False)
        if self.clip.description:
            yield Static(self.clip.description, markup=False)
        yield Horizontal(self.play_button, classes="clip-controls")

    def on_text_button_pressed(self, event: TextButtonPressed) -> None:
        if event.action == "play":
            self.post_message(ClipPlayRequested(self.clip, self.play_button))
        event.stop()


class ClipList(VerticalScroll):
    """Vertical list of clip cards; replaced wholesale on every filter change."""

    DEFAULT_CSS = """
    ClipList {
        height: 1fr;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._cards: list[ClipCard] = []

    @property
    def cards(self) -> list[ClipCard]:
        return list(self._cards)

    async def set_clips(self, clips: Sequence[ClipRecord]) -> None:
        await self.remove_children()
        self._cards = [ClipCard(clip) for clip in clips]
        if self._cards:
            await self.mount_all(self._cards)
        else:
            await self.mount(Static("No clips match.", classes="clip-empty"))

"""Persistent mini-player showing the clip currently playing."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Static

from clipmap.services.playback_session import LABEL_PLAY, NowPlaying
from clipmap.ui.text_button import LoadingButton, TextButtonPressed

AMBIENT_SPINNER = "..."


class MiniPlayerToggle(Message):
    bubble = True


class MiniPlayer(Widget):
    DEFAULT_CSS = """
    MiniPlayer {
        height: 4;
        border: solid white;
        padding: 0 1;
    }

    #mp-title-row {
        height: 1;
    }

    #mp-title {
        width: auto;
        text-style: bold;
    }

    #mp-ambient {
        width: 4;
        margin-left: 1;
        color: $warning;
    }

    #mp-meta {
        height: 1;
        color: $text-muted;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title = Static("", id="mp-title", markup=False)
        self._ambient = Static("", id="mp-ambient")
        self._meta = Static("", id="mp-meta", markup=False)
        self.play_button = LoadingButton(LABEL_PLAY, action="toggle", id="mp-play")
        self._ambient_active = False
        self.display = False

    @property
    def ambient_active(self) -> bool:
        return self._ambient_active

    def compose(self) -> ComposeResult:
        yield Vertical(
            Horizontal(self._title, self._ambient, id="mp-title-row"),
            self._meta,
            self.play_button,
        )

    def update_now_playing(self, now_playing: NowPlaying) -> None:
        self._title.update(now_playing.title)
        self._meta.update(now_playing.meta)
        self.play_button.set_label(now_playing.control_label)
        self.display = now_playing.visible

    def set_ambient(self, active: bool) -> None:
        self._ambient_active = active
        self._ambient.update(AMBIENT_SPINNER if active else "")

    def on_text_button_pressed(self, event: TextButtonPressed) -> None:
        if event.action == "toggle":
            self.post_message(MiniPlayerToggle())
        event.stop()

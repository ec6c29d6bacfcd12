"""Single-line text buttons, including the loading-aware playback trigger."""

from __future__ import annotations

from textual.events import Click, Key
from textual.message import Message
from textual.widgets import Static

LOADING_SUFFIX = " ..."


class TextButtonPressed(Message):
    def __init__(self, action: str) -> None:
        super().__init__()
        self.action = action


class TextButton(Static):
    DEFAULT_CSS = """
    .text-button {
        background: $panel;
        color: $text;
        height: 1;
        width: auto;
        padding: 0 1;
        content-align: center middle;
    }

    .text-button:focus {
        background: $boost;
        color: $text;
    }
    """

    def __init__(
        self,
        label: str,
        *,
        action: str,
        classes: str | None = "text-button",
        **kwargs,
    ) -> None:
        if not action.strip():
            raise ValueError("action must be non-empty")
        super().__init__(label, classes=classes, **kwargs)
        self.action = action
        self.can_focus = True

    def on_click(self, event: Click) -> None:
        self._emit()
        event.stop()

    def on_key(self, event: Key) -> None:
        if event.key not in {"enter", "space"}:
            return
        self._emit()
        event.stop()

    def _emit(self) -> None:
        self.post_message(TextButtonPressed(self.action))


class LoadingButton(TextButton):
    """Playback trigger that can show a busy marker next to its label."""

    DEFAULT_CSS = """
    LoadingButton.loading {
        color: $warning;
        text-style: italic;
    }
    """

    def __init__(self, label: str, *, action: str, **kwargs) -> None:
        super().__init__(label, action=action, **kwargs)
        self._label = label
        self._loading = False

    @property
    def label_text(self) -> str:
        return self._label

    @property
    def loading(self) -> bool:
        return self._loading

    def set_label(self, label: str) -> None:
        self._label = label
        self._refresh_label()

    def set_loading(self, loading: bool) -> None:
        self._loading = loading
        self.set_class(loading, "loading")
        self._refresh_label()

    def _refresh_label(self) -> None:
        self.update(self._label + (LOADING_SUFFIX if self._loading else ""))

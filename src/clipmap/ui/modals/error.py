"""Error modal for startup and catalog failures."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label


class ErrorModal(ModalScreen[None]):
    """Display a short error message until dismissed."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("enter", "close", "Close"),
    ]

    def __init__(self, message: str, *, title: str = "Something went wrong") -> None:
        super().__init__()
        self.message = message
        self._title = title
        self._close_button: Button | None = None

    def compose(self) -> ComposeResult:
        self._close_button = Button("Close", id="close")
        yield Vertical(
            Label(self._title, id="modal-title"),
            Label(self.message, markup=False),
            self._close_button,
            id="modal-body",
        )

    def on_mount(self) -> None:
        if self._close_button is not None:
            self._close_button.focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)

"""Cross-module event/message models for service and UI communication.

Dataclass events are used for service signaling, while `textual.message`
types are used for widget-level interaction routing.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from textual.message import Message

if TYPE_CHECKING:
    from clipmap.services.clip_catalog import ClipRecord
    from clipmap.services.playback_session import NowPlaying


@dataclass(frozen=True)
class TriggerIndicatorChanged:
    """Service event emitted when a trigger's loading flag flips."""

    trigger: Hashable
    loading: bool


@dataclass(frozen=True)
class AmbientIndicatorChanged:
    """Service event emitted when the controlless loading indicator toggles."""

    active: bool


@dataclass(frozen=True)
class NowPlayingChanged:
    """Service event emitted when mini-player presentation fields change."""

    now_playing: NowPlaying


class ClipPlayRequested(Message):
    """UI message asking to play a catalog clip from a trigger widget."""

    def __init__(self, clip: ClipRecord, trigger: Hashable) -> None:
        super().__init__()
        self.clip = clip
        self.trigger = trigger

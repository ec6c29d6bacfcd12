"""Single-owner loading indicator bookkeeping for playback triggers.

At most one trigger shows a loading indicator at a time. An ambient indicator
(the mini-player title spinner) runs alongside it and also covers requests that
carry no trigger. Indicator state lives here, keyed by trigger identity; the UI
learns about changes through the `on_change` callback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass

from clipmap.events import AmbientIndicatorChanged, TriggerIndicatorChanged

logger = logging.getLogger(__name__)

IndicatorEvent = TriggerIndicatorChanged | AmbientIndicatorChanged


@dataclass
class IndicatorState:
    loading: bool = False


class LoadingIndicatorManager:
    """Owns the trigger -> indicator mapping and the active loader reference."""

    def __init__(
        self, *, on_change: Callable[[IndicatorEvent], None] | None = None
    ) -> None:
        self._on_change = on_change
        self._states: dict[Hashable, IndicatorState] = {}
        self._active: Hashable | None = None
        self._ambient_active = False

    @property
    def active(self) -> Hashable | None:
        return self._active

    @property
    def ambient_active(self) -> bool:
        return self._ambient_active

    def is_loading(self, trigger: Hashable) -> bool:
        state = self._states.get(trigger)
        return state is not None and state.loading

    def loading_triggers(self) -> list[Hashable]:
        return [trigger for trigger, state in self._states.items() if state.loading]

    def show(self, trigger: Hashable | None = None) -> None:
        """Mark `trigger` as loading; without a trigger only the ambient one."""
        if trigger is None:
            self._set_ambient(True)
            return
        if self.is_loading(trigger):
            return
        if self._active is not None and self._active != trigger:
            self.hide(self._active)
        self._states.setdefault(trigger, IndicatorState()).loading = True
        self._active = trigger
        logger.debug("Loading indicator shown", extra={"trigger": trigger})
        self._notify(TriggerIndicatorChanged(trigger, True))
        self._set_ambient(True)

    def hide(self, trigger: Hashable | None = None) -> None:
        """Clear `trigger`'s indicator and the ambient one; no-op if idle."""
        if trigger is None:
            self._set_ambient(False)
            return
        state = self._states.get(trigger)
        if state is None or not state.loading:
            return
        # Drop the entry so long sessions do not accumulate stale triggers.
        del self._states[trigger]
        if self._active == trigger:
            self._active = None
        logger.debug("Loading indicator hidden", extra={"trigger": trigger})
        self._notify(TriggerIndicatorChanged(trigger, False))
        self._set_ambient(False)

    def clear_active(self) -> None:
        """Hide whichever trigger is active, or just the ambient indicator."""
        if self._active is not None:
            self.hide(self._active)
        else:
            self._set_ambient(False)

    def _set_ambient(self, active: bool) -> None:
        if self._ambient_active == active:
            return
        self._ambient_active = active
        self._notify(AmbientIndicatorChanged(active))

    def _notify(self, event: IndicatorEvent) -> None:
        if self._on_change is None:
            return
        self._on_change(event)

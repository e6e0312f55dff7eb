from __future__ import annotations

from attitude_engine.behavior import BehaviorDetector
from attitude_engine.environment import InputEvent, InputType

# hide count -> (delta, reason). Later hides are not scored.
HIDE_PENALTIES: dict[int, tuple[int, str]] = {
    1: (-3, "Multitasking. Brave."),
    2: (-3, "I'll wait"),
}


class TabBehavior(BehaviorDetector):
    """Counts transitions to hidden and penalizes the first two."""

    name = "tab"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._hidden_count: int | None = None

    @property
    def hidden_count(self) -> int:
        return self._hidden_count or 0

    def _on_start(self) -> None:
        self._hidden_count = 0
        self._listen(InputType.VISIBILITY_CHANGE, self._on_visibility_change)

    def _on_stop(self) -> None:
        self._hidden_count = None

    def _on_visibility_change(self, event: InputEvent) -> None:
        if self._hidden_count is None:
            return
        state = event.data.get("state", self.source.viewport.visibility)
        if state != "hidden":
            return
        self._hidden_count += 1
        penalty = HIDE_PENALTIES.get(self._hidden_count)
        if penalty is not None:
            self._score(*penalty)

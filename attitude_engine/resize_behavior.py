from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from attitude_engine.behavior import BehaviorDetector, event_number
from attitude_engine.environment import InputEvent, InputType
from attitude_engine.models import Number


@dataclass(frozen=True, slots=True)
class ResizeSample:
    at: float
    width: float
    height: float


@dataclass(slots=True)
class ResizeState:
    count: int = 0
    last: ResizeSample | None = None


# A rule sees the new sample plus the state before it; returning (delta, reason) scores it.
ResizeRule = Callable[[ResizeSample, ResizeState], "tuple[Number, str] | None"]


class ResizeBehavior(BehaviorDetector):
    """
    Tracks window resizes. Scores nothing unless rules are supplied.

    Example rule (a fidgety resizer):

        def fidgety(sample, state):
            if state.last and sample.at - state.last.at < 500:
                return -1, "Fidgety resizer"
            return None
    """

    name = "resize"

    def __init__(self, *args, rules: Iterable[ResizeRule] = (), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.rules: tuple[ResizeRule, ...] = tuple(rules)
        self._state: ResizeState | None = None

    @property
    def resize_count(self) -> int:
        return self._state.count if self._state is not None else 0

    def _on_start(self) -> None:
        self._state = ResizeState()
        self._listen(InputType.RESIZE, self._on_resize)

    def _on_stop(self) -> None:
        self._state = None

    def _on_resize(self, event: InputEvent) -> None:
        st = self._state
        if st is None:
            return
        vp = self.source.viewport
        sample = ResizeSample(
            at=self.clock.now(),
            width=event_number(event, "width", vp.width),
            height=event_number(event, "height", vp.height),
        )
        for rule in self.rules:
            outcome = rule(sample, st)
            if outcome is not None:
                delta, reason = outcome
                self._score(delta, reason)
        st.count += 1
        st.last = sample

from __future__ import annotations

from dataclasses import dataclass

from attitude_engine.behavior import BehaviorDetector, cooldown_elapsed, event_number
from attitude_engine.config import ScrollConfig
from attitude_engine.environment import InputEvent, InputType

REASON_FAST = "Scrolls too fast"
REASON_CALM = "Reads calmly"
REASON_BOLD = "Bold assumption"

FAST_DELTA = -2
CALM_DELTA = 1
BOLD_DELTA = -2

# px of slack when deciding whether the viewport touches the bottom
BOTTOM_TOLERANCE_PX = 2.0


def scroll_depth(y: float, scroll_height: float, client_height: float) -> float:
    """Fraction of the scrollable range above the viewport top, clamped to [0, 1]."""
    scrollable = scroll_height - client_height
    if scrollable <= 0:
        return 0.0
    return max(0.0, min(1.0, y / scrollable))


def at_bottom(y: float, scroll_height: float, client_height: float) -> bool:
    if scroll_height <= client_height:
        return False
    return y + client_height >= scroll_height - BOTTOM_TOLERANCE_PX


@dataclass(slots=True)
class ScrollState:
    session_start: float
    last_y: float
    last_at: float
    max_depth: float
    last_fast_at: float | None = None
    last_calm_at: float | None = None
    ultra_fast_triggered: bool = False


@dataclass(frozen=True, slots=True)
class ScrollMetrics:
    max_depth: float
    elapsed_ms: float


class ScrollBehavior(BehaviorDetector):
    """
    Judges scroll speed and how quickly the reader hits the bottom.

    Per scroll sample:
      speed = |dy| / max(1, dt)   (px/ms)
      - distance >= min_distance and speed >= fast_speed (fast cooldown) -> -2
      - otherwise distance >= min_distance and speed <= calm_speed (calm cooldown) -> +1
      - bottom reached within ultra_fast_bottom_ms of start -> -2, once per run
    """

    name = "scroll"
    config_class = ScrollConfig

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._state: ScrollState | None = None

    def metrics(self) -> ScrollMetrics | None:
        st = self._state
        if st is None:
            return None
        return ScrollMetrics(max_depth=st.max_depth, elapsed_ms=self.clock.now() - st.session_start)

    def _on_start(self) -> None:
        now = self.clock.now()
        vp = self.source.viewport
        self._state = ScrollState(
            session_start=now,
            last_y=float(vp.scroll_y),
            last_at=now,
            max_depth=scroll_depth(vp.scroll_y, vp.scroll_height, vp.client_height),
        )
        self._listen(InputType.SCROLL, self._on_scroll)

    def _on_stop(self) -> None:
        self._state = None

    def _on_scroll(self, event: InputEvent) -> None:
        st = self._state
        if st is None:
            return
        cfg: ScrollConfig = self.config
        vp = self.source.viewport
        now = self.clock.now()

        y = event_number(event, "y", vp.scroll_y)
        scroll_height = event_number(event, "scroll_height", vp.scroll_height)
        client_height = event_number(event, "client_height", vp.client_height)

        distance = abs(y - st.last_y)
        speed = distance / max(1.0, now - st.last_at)

        st.max_depth = max(st.max_depth, scroll_depth(y, scroll_height, client_height))

        if distance >= cfg.min_distance:
            if speed >= cfg.fast_speed and cooldown_elapsed(st.last_fast_at, now, cfg.fast_cooldown):
                st.last_fast_at = now
                self._score(FAST_DELTA, REASON_FAST)
            elif speed <= cfg.calm_speed and cooldown_elapsed(st.last_calm_at, now, cfg.calm_cooldown):
                st.last_calm_at = now
                self._score(CALM_DELTA, REASON_CALM)

        if not st.ultra_fast_triggered and at_bottom(y, scroll_height, client_height):
            if now - st.session_start <= cfg.ultra_fast_bottom_ms:
                st.ultra_fast_triggered = True
                self._score(BOLD_DELTA, REASON_BOLD)

        st.last_y = y
        st.last_at = now

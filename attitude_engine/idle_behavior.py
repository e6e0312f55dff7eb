from __future__ import annotations

from dataclasses import dataclass

from attitude_engine.behavior import BehaviorDetector
from attitude_engine.config import IdleConfig
from attitude_engine.environment import InputEvent, InputType

REASON_WARN = "Thinking?"
REASON_PENALTY = "You left, didn't you"

WARN_DELTA = -1
PENALTY_DELTA = -2

ACTIVITY_EVENTS = (
    InputType.POINTER_MOVE,
    InputType.KEY_DOWN,
    InputType.POINTER_DOWN,
    InputType.TOUCH_START,
)


@dataclass(slots=True)
class IdleState:
    last_activity_at: float
    warned: bool = False
    penalized: bool = False


class IdleBehavior(BehaviorDetector):
    """
    Inactivity watcher, polled every idle_check_every_ms.

    Within one idle episode the warning (-1) and the penalty (-2) each fire at
    most once. Any pointer/key/touch activity starts a new episode.
    """

    name = "idle"
    config_class = IdleConfig

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._state: IdleState | None = None

    def idle_ms(self) -> float | None:
        if self._state is None:
            return None
        return self.clock.now() - self._state.last_activity_at

    def _on_start(self) -> None:
        self._state = IdleState(last_activity_at=self.clock.now())
        for event_type in ACTIVITY_EVENTS:
            self._listen(event_type, self._mark_activity)
        self._every(self.config.idle_check_every_ms, self._check_idle)

    def _on_stop(self) -> None:
        self._state = None

    def _mark_activity(self, event: InputEvent) -> None:
        st = self._state
        if st is None:
            return
        st.last_activity_at = self.clock.now()
        st.warned = False
        st.penalized = False

    def _check_idle(self) -> None:
        st = self._state
        if st is None:
            return
        cfg: IdleConfig = self.config
        idle_ms = self.clock.now() - st.last_activity_at

        if not st.warned and cfg.idle_warn_ms <= idle_ms <= cfg.idle_warn_max_ms:
            st.warned = True
            self._score(WARN_DELTA, REASON_WARN)

        if not st.penalized and idle_ms >= cfg.idle_penalty_ms:
            st.penalized = True
            self._score(PENALTY_DELTA, REASON_PENALTY)

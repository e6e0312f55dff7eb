from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from attitude_engine.behavior import BehaviorDetector, cooldown_elapsed
from attitude_engine.config import ClickConfig
from attitude_engine.environment import InputEvent, InputType, is_interactive, tag_of

REASON_SPAM = "Click spam"
REASON_NOT_INTERACTIVE = "That wasn't interactive"

SPAM_DELTA = -2
NOT_INTERACTIVE_DELTA = -1


@dataclass(slots=True)
class ClickState:
    click_times: deque[float] = field(default_factory=deque)
    last_spam_at: float | None = None
    last_interactive_at: float | None = None


class ClickBehavior(BehaviorDetector):
    """
    Click spam, clicks on dead content, and polite clicks.

    Rules, in order, per click:
      1) rolling window: click_spam_count clicks within click_window_ms -> -2
         (spam cooldown, regardless of target)
      2) target is not interactive and its tag is in non_interactive_tags -> -1
      3) target is interactive (itself or an ancestor), reward cooldown -> reward delta
    """

    name = "click"
    config_class = ClickConfig

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._state: ClickState | None = None

    def _on_start(self) -> None:
        self._state = ClickState()
        self._listen(InputType.CLICK, self._on_click)

    def _on_stop(self) -> None:
        self._state = None

    def _on_click(self, event: InputEvent) -> None:
        st = self._state
        if st is None:
            return
        cfg: ClickConfig = self.config
        now = self.clock.now()

        st.click_times.append(now)
        window_start = now - cfg.click_window_ms
        while st.click_times and st.click_times[0] < window_start:
            st.click_times.popleft()

        if len(st.click_times) >= cfg.click_spam_count and cooldown_elapsed(
                st.last_spam_at, now, cfg.click_spam_cooldown
        ):
            st.last_spam_at = now
            self._score(SPAM_DELTA, REASON_SPAM)

        target = event.target
        interactive = is_interactive(target)

        if not interactive and tag_of(target) in cfg.non_interactive_tags:
            self._score(NOT_INTERACTIVE_DELTA, REASON_NOT_INTERACTIVE)
            return

        if interactive and cooldown_elapsed(st.last_interactive_at, now, cfg.interactive_reward_cooldown):
            st.last_interactive_at = now
            if cfg.interactive_reward_delta != 0:
                self._score(cfg.interactive_reward_delta, cfg.interactive_reward_reason)

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from attitude_engine.behavior import event_number
from attitude_engine.clock import Clock, TimerHandle
from attitude_engine.config import EasterEggConfig
from attitude_engine.egg_state import (
    CheckSignal,
    ClickSignal,
    EggState,
    Fired,
    KeySignal,
    ResetSignal,
    ScoreSignal,
    ScrollSignal,
    Signal,
    reduce,
)
from attitude_engine.engine import ScoreEngine
from attitude_engine.environment import EventSource, InputEvent, InputType, is_interactive
from attitude_engine.models import (
    EggClearEvent,
    EggTriggerEvent,
    EggType,
    Level,
    LevelChangeEvent,
    ScoreChangeEvent,
)
from attitude_engine.pubsub import Channel, Unsubscribe
from attitude_engine.scroll_behavior import scroll_depth

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES: dict[EggType, str] = {
    EggType.HIGH_SCORE: "Secret high-score mode: the judgment is impressed.",
    EggType.PERFECT_SCROLL: "Perfect scroll detected. You read the whole thing!",
    EggType.CLICK_MASTER: "Click master unlocked. Smooth moves!",
    EggType.KEY_COMBO: "Flavor text: you cracked the secret combo.",
    EggType.SUPER: "Good ending unlocked. Flavortown applause incoming.",
}
FALLBACK_MESSAGE = "The judgment is pleasantly surprised."


@dataclass(frozen=True, slots=True)
class ActiveEgg:
    egg: EggType | str
    message: str
    started_at: float
    duration_ms: float


def _egg_type(egg: EggType | str) -> EggType | str:
    try:
        return EggType(egg)
    except ValueError:
        return str(egg)


class EasterEggDetector:
    """
    Watches for rare compound behavior and fires one presentation at a time.

    Trigger bookkeeping lives in an immutable EggState advanced by
    egg_state.reduce(); this class only feeds it signals and owns the side
    effects: listener wiring, the periodic check, and the presentation
    lifecycle (active egg + its auto-reset timer).

    Presentation resets never touch the bookkeeping. Only negative score
    deltas (via the reducer) or reset_easter_eggs(full=True) do.
    """

    def __init__(
            self,
            engine: ScoreEngine,
            source: EventSource,
            clock: Clock,
            options: Mapping[str, Any] | EasterEggConfig | None = None,
    ) -> None:
        self.engine = engine
        self.source = source
        self.clock = clock
        self.config = EasterEggConfig.from_options(options, label="easter_eggs")
        self.state = EggState()
        self.active: ActiveEgg | None = None
        self.triggers: Channel[EggTriggerEvent] = Channel("egg_trigger")
        self.clears: Channel[EggClearEvent] = Channel("egg_clear")

        self._running = False
        self._unsubscribers: list[Unsubscribe] = []
        self._check_timer: TimerHandle | None = None
        self._reset_timer: TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._running

    def on_trigger(self, handler: Callable[[EggTriggerEvent], object]) -> Unsubscribe:
        return self.triggers.subscribe(handler)

    def on_clear(self, handler: Callable[[EggClearEvent], object]) -> Unsubscribe:
        return self.clears.subscribe(handler)

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def start(self) -> None:
        if self._running:
            logger.warning("easter egg detector already running; start() ignored")
            return
        self._running = True
        self._unsubscribers = [
            self.engine.on_score_change(self._guard(self._on_score_change)),
            self.engine.on_level_change(self._guard(self._on_level_change)),
            self.source.listen(InputType.SCROLL, self._guard(self._on_scroll)),
            self.source.listen(InputType.CLICK, self._guard(self._on_click)),
            self.source.listen(InputType.KEY_DOWN, self._guard(self._on_key)),
        ]
        self._check_timer = self.clock.call_every(self.config.check_every_ms, self._scheduled_check)
        self._anchor_scroll()
        logger.info("easter egg detector started")
        self.check_easter_eggs()

    def destroy(self) -> None:
        """Detach every listener, cancel every timer, clear the presentation."""
        if self._running:
            self._running = False
            for unsubscribe in self._unsubscribers:
                unsubscribe()
            self._unsubscribers = []
            if self._check_timer is not None:
                self._check_timer.cancel()
                self._check_timer = None
            logger.info("easter egg detector destroyed")
        self.reset_easter_eggs()

    # ----------------------------
    # Public operations
    # ----------------------------

    def check_easter_eggs(self) -> Fired:
        """Re-evaluate HighScore and Super against the current time and score."""
        return self._apply(CheckSignal(at=self.clock.now(), score=self.engine.get_score()))

    def trigger_easter_egg(
            self,
            egg: EggType | str,
            message: str | None = None,
            *,
            duration_ms: float | None = None,
            glow: bool = True,
    ) -> EggTriggerEvent:
        """
        Start a presentation for egg, replacing any active one.
        Bookkeeping is untouched, so this is safe to call from tooling.
        """
        self.reset_easter_eggs()

        egg = _egg_type(egg)
        now = self.clock.now()
        duration = float(duration_ms) if duration_ms is not None else self.config.egg_duration_ms
        text = message or DEFAULT_MESSAGES.get(egg, FALLBACK_MESSAGE)  # type: ignore[arg-type]

        self.active = ActiveEgg(egg=egg, message=text, started_at=now, duration_ms=duration)
        self._reset_timer = self.clock.call_later(duration, self._expire)
        logger.info("easter egg %s: %s", getattr(egg, "value", egg), text)

        event = EggTriggerEvent(egg=egg, message=text, at=now, duration_ms=duration, glow=glow)
        self.triggers.publish(event)
        return event

    def reset_easter_eggs(self, *, full: bool = False) -> None:
        """
        Clear the active presentation and cancel its auto-reset timer.

        full=True also returns every trigger to its initial state (cooldowns,
        one-shot flags, streaks and buffers).
        """
        if self._reset_timer is not None:
            self._reset_timer.cancel()
            self._reset_timer = None

        if full:
            self.state, _ = reduce(self.state, ResetSignal(at=self.clock.now()), self.config)
            if self._running:
                self._anchor_scroll()

        active = self.active
        self.active = None
        if active is not None:
            self.clears.publish(EggClearEvent(egg=active.egg, at=self.clock.now()))

    # ----------------------------
    # Internals
    # ----------------------------

    def _guard(self, handler: Callable[[Any], None]) -> Callable[[Any], None]:
        def guarded(payload: Any) -> None:
            if self._running:
                handler(payload)

        return guarded

    def _apply(self, signal: Signal) -> Fired:
        self.state, fired = reduce(self.state, signal, self.config)
        for egg in fired:
            self.trigger_easter_egg(egg)
        return fired

    def _expire(self) -> None:
        self._reset_timer = None
        self.reset_easter_eggs()

    def _scheduled_check(self) -> None:
        if self._running:
            self.check_easter_eggs()

    def _on_score_change(self, event: ScoreChangeEvent) -> None:
        self._apply(ScoreSignal(at=self.clock.now(), score=event.score, delta=event.delta))

    def _on_level_change(self, event: LevelChangeEvent) -> None:
        if event.level == Level.RESPECTFUL:
            self.check_easter_eggs()

    def _on_click(self, event: InputEvent) -> None:
        self._apply(ClickSignal(at=self.clock.now(), interactive=is_interactive(event.target)))

    def _anchor_scroll(self) -> None:
        # The first scroll is measured against where the page was, not against itself.
        vp = self.source.viewport
        depth = scroll_depth(vp.scroll_y, vp.scroll_height, vp.client_height)
        self._apply(ScrollSignal(at=self.clock.now(), y=float(vp.scroll_y), depth=depth))

    def _on_scroll(self, event: InputEvent) -> None:
        vp = self.source.viewport
        y = event_number(event, "y", vp.scroll_y)
        depth = scroll_depth(
            y,
            event_number(event, "scroll_height", vp.scroll_height),
            event_number(event, "client_height", vp.client_height),
        )
        self._apply(ScrollSignal(at=self.clock.now(), y=y, depth=depth))

    def _on_key(self, event: InputEvent) -> None:
        self._apply(KeySignal(at=self.clock.now(), key=event.data.get("key", "")))

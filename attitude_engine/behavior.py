from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Mapping

from attitude_engine.clock import Clock, TimerHandle
from attitude_engine.config import ConfigError
from attitude_engine.engine import ScoreEngine
from attitude_engine.environment import EventSource, InputEvent, InputType, payload_number
from attitude_engine.models import Number, ScoreSnapshot
from attitude_engine.pubsub import Unsubscribe

logger = logging.getLogger(__name__)


def cooldown_elapsed(last_at: float | None, now: float, cooldown_ms: float) -> bool:
    """Strictly more than cooldown_ms since last_at (or never fired)."""
    return last_at is None or now - last_at > cooldown_ms


def event_number(event: InputEvent, key: str, fallback: float) -> float:
    return payload_number(event.data, key, fallback)


class BehaviorDetector(ABC):
    """
    Base for the signal detectors.

    Two states: Stopped -> Running on start(), Running -> Stopped on stop().
    - start() while running is a logged no-op (no double registration).
    - stop() detaches every listener and cancels every timer before returning.
    - Per-run state is built in _on_start() and dropped in _on_stop().
    """

    name: ClassVar[str] = "behavior"
    config_class: ClassVar[Any] = None

    def __init__(
            self,
            engine: ScoreEngine,
            source: EventSource,
            clock: Clock,
            options: Mapping[str, Any] | Any | None = None,
    ) -> None:
        self.engine = engine
        self.source = source
        self.clock = clock
        if self.config_class is not None:
            self.config = self.config_class.from_options(options, label=self.name)
        elif options:
            raise ConfigError(f"{self.name} takes no options")
        else:
            self.config = None
        self._running = False
        self._unsubscribers: list[Unsubscribe] = []
        self._timers: list[TimerHandle] = []

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            logger.warning("%s detector already running; start() ignored", self.name)
            return
        self._running = True
        self._on_start()
        logger.info("%s detector started", self.name)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        for timer in self._timers:
            timer.cancel()
        self._unsubscribers.clear()
        self._timers.clear()
        self._on_stop()
        logger.info("%s detector stopped", self.name)

    @abstractmethod
    def _on_start(self) -> None: ...

    def _on_stop(self) -> None:
        return None

    def _listen(self, event_type: InputType, handler: Callable[[InputEvent], None]) -> None:
        def guarded(event: InputEvent) -> None:
            if self._running:
                handler(event)

        self._unsubscribers.append(self.source.listen(event_type, guarded))

    def _every(self, interval_ms: float, callback: Callable[[], None]) -> None:
        def guarded() -> None:
            if self._running:
                callback()

        self._timers.append(self.clock.call_every(interval_ms, guarded))

    def _score(self, delta: Number, reason: str) -> ScoreSnapshot:
        logger.debug("%s: %+g %r", self.name, delta, reason)
        return self.engine.change_score(delta, reason)

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from attitude_engine.clock import Clock
from attitude_engine.easter_eggs import EasterEggDetector
from attitude_engine.engine import ScoreEngine
from attitude_engine.events import Event, EventType
from attitude_engine.models import EggClearEvent, EggTriggerEvent, LevelChangeEvent, ScoreChangeEvent
from attitude_engine.pubsub import Unsubscribe


class EventSink(ABC):
    """
    Consumer of structured events.
    The core runs the same with or without a sink attached.
    """

    @abstractmethod
    def emit(self, event_type: EventType, at: float, **data: Any) -> None: ...


@dataclass
class InMemoryEventSink(EventSink):
    """
    Simple sink for tests/replays.
    Owns seq numbering so the core stays free of global counters.
    """

    events: list[Event] = field(default_factory=list)
    _seq: int = field(default=0, init=False)

    def emit(self, event_type: EventType, at: float, **data: Any) -> None:
        self._seq += 1
        self.events.append(Event(at=float(at), seq=self._seq, type=event_type, data=dict(data)))

    def of_type(self, event_type: EventType) -> list[Event]:
        return [e for e in self.events if e.type == event_type]


class SessionRecorder:
    """Subscribes a sink to an engine (and optionally an easter egg detector)."""

    def __init__(self, sink: EventSink, clock: Clock) -> None:
        self.sink = sink
        self.clock = clock
        self._unsubscribers: list[Unsubscribe] = []

    def attach(self, engine: ScoreEngine, eggs: EasterEggDetector | None = None) -> None:
        self._unsubscribers.append(engine.on_score_change(self._on_score))
        self._unsubscribers.append(engine.on_level_change(self._on_level))
        if eggs is not None:
            self._unsubscribers.append(eggs.on_trigger(self._on_egg))
            self._unsubscribers.append(eggs.on_clear(self._on_egg_clear))

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _on_score(self, e: ScoreChangeEvent) -> None:
        self.sink.emit(
            EventType.SCORE_CHANGED,
            self.clock.now(),
            previous_score=e.previous_score,
            score=e.score,
            delta=e.delta,
            reason=e.reason,
            level=e.level.value,
        )

    def _on_level(self, e: LevelChangeEvent) -> None:
        self.sink.emit(
            EventType.LEVEL_CHANGED,
            self.clock.now(),
            previous_level=e.previous_level.value,
            level=e.level.value,
            score=e.score,
            reason=e.reason,
        )

    def _on_egg(self, e: EggTriggerEvent) -> None:
        self.sink.emit(
            EventType.EGG_TRIGGERED,
            e.at,
            egg=getattr(e.egg, "value", e.egg),
            message=e.message,
            duration_ms=e.duration_ms,
        )

    def _on_egg_clear(self, e: EggClearEvent) -> None:
        self.sink.emit(EventType.EGG_CLEARED, e.at, egg=getattr(e.egg, "value", e.egg))

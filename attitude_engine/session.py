from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from attitude_engine.behavior_system import BehaviorSystem
from attitude_engine.clock import Clock, ManualClock
from attitude_engine.config import SessionConfig
from attitude_engine.easter_eggs import EasterEggDetector
from attitude_engine.engine import ScoreEngine
from attitude_engine.environment import InMemoryEventSource, InputEvent
from attitude_engine.resize_behavior import ResizeRule


class AttitudeSession:
    """
    Per-session context: one clock, one engine, one event source, and the
    detectors wired to them. Nothing here is global, so tests can build as
    many independent sessions as they like.
    """

    def __init__(
            self,
            config: SessionConfig | None = None,
            *,
            clock: Clock | None = None,
            engine: ScoreEngine | None = None,
            source: InMemoryEventSource | None = None,
            resize_rules: Iterable[ResizeRule] = (),
    ) -> None:
        self.config = config if config is not None else SessionConfig()
        self.clock = clock if clock is not None else ManualClock()
        self.engine = engine if engine is not None else ScoreEngine()
        self.source = source if source is not None else InMemoryEventSource(self.clock)
        self.behaviors = BehaviorSystem(
            self.engine,
            self.source,
            self.clock,
            scroll=self.config.scroll,
            click=self.config.click,
            idle=self.config.idle,
            resize_rules=resize_rules,
        )
        self.eggs = EasterEggDetector(self.engine, self.source, self.clock, self.config.easter_eggs)

    def start(self) -> None:
        self.behaviors.start()
        self.eggs.start()

    def stop(self) -> None:
        self.behaviors.stop()
        self.eggs.destroy()

    def replay(self, events: Iterable[InputEvent], *, until_ms: float | None = None) -> None:
        """
        Feed recorded events through a ManualClock, advancing time to each
        event first so periodic checks and auto-resets fire in between.
        """
        if not isinstance(self.clock, ManualClock):
            raise TypeError("replay() needs a ManualClock")
        clock = self.clock
        for event in events:
            if event.at > clock.now():
                clock.advance_to(event.at)
            self.source.feed(replace(event, at=clock.now()))
        if until_ms is not None and until_ms > clock.now():
            clock.advance_to(until_ms)

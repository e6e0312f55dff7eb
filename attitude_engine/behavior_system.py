from __future__ import annotations

from typing import Any, Iterable, Mapping

from attitude_engine.behavior import BehaviorDetector
from attitude_engine.click_behavior import ClickBehavior
from attitude_engine.clock import Clock
from attitude_engine.engine import ScoreEngine
from attitude_engine.environment import EventSource
from attitude_engine.idle_behavior import IdleBehavior
from attitude_engine.resize_behavior import ResizeBehavior, ResizeRule
from attitude_engine.scroll_behavior import ScrollBehavior
from attitude_engine.tab_behavior import TabBehavior


class BehaviorSystem:
    """Wires the five detectors to one engine and starts/stops them together."""

    def __init__(
            self,
            engine: ScoreEngine,
            source: EventSource,
            clock: Clock,
            *,
            scroll: Mapping[str, Any] | Any | None = None,
            click: Mapping[str, Any] | Any | None = None,
            idle: Mapping[str, Any] | Any | None = None,
            resize_rules: Iterable[ResizeRule] = (),
    ) -> None:
        self.scroll = ScrollBehavior(engine, source, clock, scroll)
        self.click = ClickBehavior(engine, source, clock, click)
        self.idle = IdleBehavior(engine, source, clock, idle)
        self.tab = TabBehavior(engine, source, clock)
        self.resize = ResizeBehavior(engine, source, clock, rules=resize_rules)

    @property
    def modules(self) -> dict[str, BehaviorDetector]:
        return {
            "scroll": self.scroll,
            "click": self.click,
            "idle": self.idle,
            "tab": self.tab,
            "resize": self.resize,
        }

    @property
    def running(self) -> bool:
        return any(m.running for m in self.modules.values())

    def start(self) -> None:
        for module in self.modules.values():
            module.start()

    def stop(self) -> None:
        for module in self.modules.values():
            module.stop()

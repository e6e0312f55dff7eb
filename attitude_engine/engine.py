from __future__ import annotations

import logging
import math
import threading
from typing import Any, Callable

from attitude_engine.models import (
    Level,
    LevelChangeEvent,
    Number,
    ScoreChangeEvent,
    ScoreSnapshot,
)
from attitude_engine.pubsub import Channel, Unsubscribe, log_handler_error

logger = logging.getLogger(__name__)

# (minimum score, level), evaluated top-down; anything below the last row is DONE_WITH_YOU.
LEVEL_THRESHOLDS: tuple[tuple[int, Level], ...] = (
    (5, Level.RESPECTFUL),
    (1, Level.NEUTRAL),
    (-5, Level.DISAPPOINTED),
    (-9, Level.JUDGY),
)


def level_for_score(score: Number) -> Level:
    """
    Map a score to its level. Thresholds are inclusive and the first match wins:

      score >= 5  -> RESPECTFUL
      score >= 1  -> NEUTRAL
      score >= -5 -> DISAPPOINTED   (a fresh score of 0 lands here)
      score >= -9 -> JUDGY
      otherwise   -> DONE_WITH_YOU
    """
    for minimum, level in LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return Level.DONE_WITH_YOU


def coerce_number(value: Any) -> Number:
    """
    Lenient numeric coercion: never raises, anything unusable becomes 0.

    bools count as 1/0, numeric strings are parsed, NaN and infinities are
    rejected. Integral floats come back as int.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        result = value
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return 0
    else:
        try:
            result = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0
    if math.isnan(result) or math.isinf(result):
        return 0
    if result.is_integer():
        return int(result)
    return result


class ScoreEngine:
    """
    Owns the score/level pair and its subscriber registries.

    Every mutation publishes exactly one ScoreChangeEvent, followed by a
    LevelChangeEvent only when the recomputed level differs from the previous
    one. Delivery is synchronous and a raising handler is logged without
    stopping delivery, so a level change is never lost. The read-modify-emit sequence holds a
    re-entrant lock, so handlers may call back into the engine.
    """

    def __init__(self, initial_score: Any = 0) -> None:
        self._lock = threading.RLock()
        self._score: Number = coerce_number(initial_score)
        self._level: Level = level_for_score(self._score)
        self.score_changes: Channel[ScoreChangeEvent] = Channel("score", on_error=log_handler_error)
        self.level_changes: Channel[LevelChangeEvent] = Channel("level", on_error=log_handler_error)

    def get_score(self) -> Number:
        return self._score

    def get_level(self) -> Level:
        return self._level

    def snapshot(self) -> ScoreSnapshot:
        return ScoreSnapshot(score=self._score, level=self._level)

    def change_score(self, delta: Any, reason: str = "") -> ScoreSnapshot:
        with self._lock:
            return self._apply(self._score + coerce_number(delta), reason)

    def reset_score(self, new_score: Any = 0, reason: str = "reset") -> ScoreSnapshot:
        with self._lock:
            return self._apply(coerce_number(new_score), reason)

    def on_score_change(self, handler: Callable[[ScoreChangeEvent], object]) -> Unsubscribe:
        return self.score_changes.subscribe(handler)

    def on_level_change(self, handler: Callable[[LevelChangeEvent], object]) -> Unsubscribe:
        return self.level_changes.subscribe(handler)

    def register_hook(self, kind: str, handler: Callable[[Any], object]) -> Unsubscribe:
        if kind == "score":
            return self.on_score_change(handler)
        if kind == "level":
            return self.on_level_change(handler)
        return lambda: None

    def _apply(self, new_score: Number, reason: str) -> ScoreSnapshot:
        previous_score = self._score
        previous_level = self._level
        reason = "" if reason is None else str(reason)

        level = level_for_score(new_score)
        self._score = new_score
        self._level = level
        logger.debug("score %s -> %s (%s) level=%s", previous_score, new_score, reason, level.value)

        # Payloads use locals: handlers may re-enter and mutate before this returns.
        self.score_changes.publish(
            ScoreChangeEvent(
                previous_score=previous_score,
                score=new_score,
                delta=new_score - previous_score,
                reason=reason,
                level=level,
            )
        )

        if level != previous_level:
            self.level_changes.publish(
                LevelChangeEvent(
                    previous_level=previous_level,
                    level=level,
                    score=new_score,
                    reason=reason,
                )
            )

        return ScoreSnapshot(score=new_score, level=level)

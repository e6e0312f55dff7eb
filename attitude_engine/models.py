from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

Number = int | float


class Level(str, Enum):
    """Discrete mood categories. Always derived from the score, never stored on their own."""

    RESPECTFUL = "Respectful"
    NEUTRAL = "Neutral"
    DISAPPOINTED = "Disappointed"
    JUDGY = "Judgy"
    DONE_WITH_YOU = "Done With You"


class EggType(str, Enum):
    HIGH_SCORE = "highScoreSecret"
    PERFECT_SCROLL = "perfectScroll"
    CLICK_MASTER = "clickMaster"
    KEY_COMBO = "keyCombo"
    SUPER = "superEnding"


@dataclass(frozen=True, slots=True)
class ScoreSnapshot:
    score: Number
    level: Level


@dataclass(frozen=True, slots=True)
class ScoreChangeEvent:
    """One per mutating call. delta is score - previous_score."""

    previous_score: Number
    score: Number
    delta: Number
    reason: str
    level: Level


@dataclass(frozen=True, slots=True)
class LevelChangeEvent:
    previous_level: Level
    level: Level
    score: Number
    reason: str


@dataclass(frozen=True, slots=True)
class EggTriggerEvent:
    egg: EggType | str
    message: str
    at: float
    duration_ms: float
    glow: bool = True


@dataclass(frozen=True, slots=True)
class EggClearEvent:
    egg: EggType | str
    at: float

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """
    Vocabulary of a recorded session: what the core published, in order.
    Raw environment input is not recorded here.
    """

    SCORE_CHANGED = "SCORE_CHANGED"
    LEVEL_CHANGED = "LEVEL_CHANGED"
    EGG_TRIGGERED = "EGG_TRIGGERED"
    EGG_CLEARED = "EGG_CLEARED"


@dataclass(frozen=True, slots=True)
class Event:
    """
    A structured, orderable fact published by the core.

    at is clock time (ms); seq is owned by the sink and strictly increasing.
    """

    at: float
    seq: int
    type: EventType
    data: dict[str, Any] = field(default_factory=dict)

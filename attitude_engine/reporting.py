from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from attitude_engine.events import Event, EventType
from attitude_engine.models import ScoreSnapshot


@dataclass(frozen=True, slots=True)
class TimelineRow:
    """One printable line of a session timeline."""

    at: float
    kind: str  # "score" | "level" | "egg" | "egg-clear"
    text: str


def _fmt_delta(delta: object) -> str:
    if isinstance(delta, (int, float)):
        return f"{delta:+g}"
    return "?"


def derive_timeline(events: Iterable[Event]) -> list[TimelineRow]:
    """
    Turn a recorded event stream into timeline rows, preserving order.

    Rules:
      - SCORE_CHANGED -> "<delta> -> <score> (<reason>)"
      - LEVEL_CHANGED -> "level <previous> -> <level>"
      - EGG_TRIGGERED -> "egg <type>: <message>"
      - EGG_CLEARED   -> "egg <type> cleared"
    """
    rows: list[TimelineRow] = []
    for e in events:
        d = e.data
        if e.type == EventType.SCORE_CHANGED:
            reason = d.get("reason") or "-"
            text = f"{_fmt_delta(d.get('delta'))} -> {d.get('score')} ({reason})"
            rows.append(TimelineRow(at=e.at, kind="score", text=text))
        elif e.type == EventType.LEVEL_CHANGED:
            text = f"level {d.get('previous_level')} -> {d.get('level')}"
            rows.append(TimelineRow(at=e.at, kind="level", text=text))
        elif e.type == EventType.EGG_TRIGGERED:
            text = f"egg {d.get('egg')}: {d.get('message')}"
            rows.append(TimelineRow(at=e.at, kind="egg", text=text))
        elif e.type == EventType.EGG_CLEARED:
            rows.append(TimelineRow(at=e.at, kind="egg-clear", text=f"egg {d.get('egg')} cleared"))
    return rows


def render_timeline(events: Iterable[Event], *, final: ScoreSnapshot | None = None) -> str:
    rows = derive_timeline(events)

    out: list[str] = []
    if not rows:
        out.append("(No score changes were recorded.)")
    for row in rows:
        out.append(f"{row.at:9.1f} ms  {row.text}")

    if final is not None:
        out.append("")
        out.append(f"Final: score={final.score} level={final.level.value}")

    return "\n".join(out).rstrip() + "\n"

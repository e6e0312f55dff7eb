from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from attitude_engine.environment import InputEvent, InputType, Target

# Deepest parent chain accepted for a recorded target.
MAX_TARGET_DEPTH = 32


class InputFormatError(ValueError):
    """Raised when a recorded interaction stream fails validation."""


def load_interaction_stream(path: Path) -> list[InputEvent]:
    """Load and validate a recorded interaction stream from JSON.

    Format (a JSON array, non-decreasing in "at"):

      [
        {"at": 0,    "type": "scroll", "data": {"y": 0, "scroll_height": 4000, "client_height": 800}},
        {"at": 1500, "type": "click",  "target": {"tag": "span", "parent": {"tag": "button"}}},
        {"at": 2000, "type": "keydown", "data": {"key": "F"}},
        {"at": 9000, "type": "visibilitychange", "data": {"state": "hidden"}}
      ]

    "target" and "data" are optional.
    """

    if not path.exists():
        raise InputFormatError(f"file not found: {path}")
    if not path.is_file():
        raise InputFormatError(f"not a file: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InputFormatError(
            f"invalid JSON: {e.msg} (line {e.lineno}, col {e.colno})"
        ) from e

    return parse_interaction_stream(raw)


def parse_interaction_stream(raw: object) -> list[InputEvent]:
    if not isinstance(raw, list):
        raise InputFormatError("root must be a JSON array of events")

    events: list[InputEvent] = []
    last_at: float | None = None

    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise InputFormatError(f"event[{i}] must be an object")

        at = item.get("at")
        etype = item.get("type")
        target_raw = item.get("target", None)
        data = item.get("data", {})

        if isinstance(at, bool) or not isinstance(at, (int, float)) or at < 0:
            raise InputFormatError(f"event[{i}].at must be a number >= 0")
        if not isinstance(etype, str):
            raise InputFormatError(f"event[{i}].type must be a string")
        if not isinstance(data, dict):
            raise InputFormatError(f"event[{i}].data must be an object")

        try:
            input_type = InputType(etype)
        except ValueError as e:
            valid = ", ".join(t.value for t in InputType)
            raise InputFormatError(
                f"event[{i}].type is not a valid input type: {etype!r} (expected one of: {valid})"
            ) from e

        if last_at is not None and at < last_at:
            raise InputFormatError(
                f"events must be non-decreasing by at; event[{i}] has at={at} after {last_at}"
            )
        last_at = float(at)

        target = _parse_target(target_raw, label=f"event[{i}].target") if target_raw is not None else None
        events.append(InputEvent(type=input_type, at=float(at), target=target, data=dict(data)))

    return events


def _parse_target(raw: Any, *, label: str, depth: int = 0) -> Target:
    if depth >= MAX_TARGET_DEPTH:
        raise InputFormatError(f"{label} nests deeper than {MAX_TARGET_DEPTH} parents")
    if not isinstance(raw, dict):
        raise InputFormatError(f"{label} must be an object")

    tag = raw.get("tag")
    role = raw.get("role", None)
    parent_raw = raw.get("parent", None)

    if not isinstance(tag, str) or not tag.strip():
        raise InputFormatError(f"{label}.tag must be a non-empty string")
    if role is not None and not isinstance(role, str):
        raise InputFormatError(f"{label}.role must be a string when provided")

    parent = None
    if parent_raw is not None:
        parent = _parse_target(parent_raw, label=f"{label}.parent", depth=depth + 1)

    return Target(tag=tag.strip().upper(), role=role, parent=parent)


def dump_interaction_stream(events: list[InputEvent]) -> list[dict[str, Any]]:
    """Return a JSON-serializable stream that load_interaction_stream accepts."""
    out: list[dict[str, Any]] = []
    for e in events:
        item: dict[str, Any] = {"at": e.at, "type": e.type.value}
        if e.target is not None:
            item["target"] = _dump_target(e.target)
        if e.data:
            item["data"] = dict(e.data)
        out.append(item)
    return out


def _dump_target(target: Target) -> dict[str, Any]:
    d: dict[str, Any] = {"tag": target.tag}
    if target.role is not None:
        d["role"] = target.role
    if target.parent is not None:
        d["parent"] = _dump_target(target.parent)
    return d

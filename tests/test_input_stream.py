from __future__ import annotations

import json
from pathlib import Path

import pytest

from attitude_engine.environment import InputEvent, InputType, Target
from attitude_engine.stream_io import (
    InputFormatError,
    dump_interaction_stream,
    load_interaction_stream,
    parse_interaction_stream,
)

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_sample_stream_is_valid_and_ordered():
    events = load_interaction_stream(REPO_ROOT / "samples" / "demo_session.json")

    assert len(events) == 14
    assert [e.at for e in events] == sorted(e.at for e in events)
    link = events[3]
    assert link.type == InputType.CLICK
    assert link.target == Target("SPAN", parent=Target("A"))


def test_dumped_stream_loads_back(tmp_path: Path):
    events = [
        InputEvent(InputType.SCROLL, 0.0, data={"y": 10.0}),
        InputEvent(InputType.CLICK, 5.0, target=Target("DIV", role="button", parent=Target("MAIN"))),
    ]
    p = tmp_path / "stream.json"
    p.write_text(json.dumps(dump_interaction_stream(events)), encoding="utf-8")

    assert load_interaction_stream(p) == events


@pytest.mark.parametrize(
    "raw, message",
    [
        ({"at": 0}, "root must be a JSON array"),
        ([1], "event[0] must be an object"),
        ([{"at": -1, "type": "click"}], "event[0].at must be a number >= 0"),
        ([{"at": True, "type": "click"}], "event[0].at must be a number >= 0"),
        ([{"at": 0, "type": "hover"}], "not a valid input type"),
        ([{"at": 0, "type": "click", "data": []}], "event[0].data must be an object"),
        ([{"at": 5, "type": "click"}, {"at": 4, "type": "click"}], "non-decreasing"),
        ([{"at": 0, "type": "click", "target": {"tag": ""}}], "event[0].target.tag"),
        ([{"at": 0, "type": "click", "target": {"tag": "A", "role": 1}}], "event[0].target.role"),
    ],
)
def test_invalid_streams_are_rejected(raw, message):
    with pytest.raises(InputFormatError) as excinfo:
        parse_interaction_stream(raw)
    assert message in str(excinfo.value)


def test_missing_file_is_reported(tmp_path: Path):
    with pytest.raises(InputFormatError, match="file not found"):
        load_interaction_stream(tmp_path / "missing.json")

from attitude_engine.clock import ManualClock
from attitude_engine.engine import ScoreEngine
from attitude_engine.event_sink import InMemoryEventSink, SessionRecorder
from attitude_engine.events import EventType
from attitude_engine.reporting import derive_timeline, render_timeline


def _recorded():
    clock = ManualClock()
    engine = ScoreEngine()
    sink = InMemoryEventSink()
    recorder = SessionRecorder(sink, clock)
    recorder.attach(engine)

    clock.advance_to(400)
    engine.change_score(-2, "Scrolls too fast")
    clock.advance_to(900)
    engine.change_score(6, "")
    recorder.detach()
    engine.change_score(-1, "unrecorded")
    return engine, sink


def test_recorder_keeps_causal_order_and_sequence():
    _, sink = _recorded()

    assert [e.type for e in sink.events] == [
        EventType.SCORE_CHANGED,
        EventType.SCORE_CHANGED,
        EventType.LEVEL_CHANGED,
    ]
    assert [e.seq for e in sink.events] == [1, 2, 3]
    assert sink.events[2].data == {
        "previous_level": "Disappointed",
        "level": "Neutral",
        "score": 4,
        "reason": "",
    }


def test_timeline_rows_and_rendering():
    engine, sink = _recorded()

    rows = derive_timeline(sink.events)
    assert [r.kind for r in rows] == ["score", "score", "level"]
    assert rows[0].text == "-2 -> -2 (Scrolls too fast)"
    assert rows[1].text == "+6 -> 4 (-)"
    assert rows[2].text == "level Disappointed -> Neutral"

    out = render_timeline(sink.events, final=engine.snapshot())
    lines = out.splitlines()
    assert lines[0] == "    400.0 ms  -2 -> -2 (Scrolls too fast)"
    assert lines[-1] == "Final: score=3 level=Neutral"


def test_empty_timeline_says_so():
    assert render_timeline([]) == "(No score changes were recorded.)\n"

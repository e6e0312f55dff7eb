from __future__ import annotations

import logging
import math
import threading

import pytest

from attitude_engine.clock import ManualClock
from attitude_engine.engine import ScoreEngine, coerce_number, level_for_score
from attitude_engine.models import Level
from tests._support.session_helpers import score_log


def test_fresh_engine_starts_at_zero_and_disappointed():
    engine = ScoreEngine()
    assert engine.get_score() == 0
    assert engine.get_level() == Level.DISAPPOINTED


def test_first_point_moves_to_neutral_with_one_level_event():
    engine = ScoreEngine()
    log = score_log(engine)

    snap = engine.change_score(1, "x")

    assert snap.score == 1
    assert snap.level == Level.NEUTRAL
    assert len(log.scores) == 1
    assert log.scores[0].previous_score == 0
    assert log.scores[0].delta == 1
    assert log.scores[0].reason == "x"
    assert [(e.previous_level, e.level) for e in log.levels] == [(Level.DISAPPOINTED, Level.NEUTRAL)]


def test_six_penalties_from_zero_end_judgy():
    engine = ScoreEngine()
    log = score_log(engine)

    for _ in range(6):
        engine.change_score(-1, "meh")

    assert engine.get_score() == -6
    assert engine.get_level() == Level.JUDGY
    assert len(log.scores) == 6
    # Only the step from -5 to -6 crosses a threshold.
    assert [(e.previous_level, e.level, e.score) for e in log.levels] == [
        (Level.DISAPPOINTED, Level.JUDGY, -6)
    ]


@pytest.mark.parametrize(
    "score, level",
    [
        (100, Level.RESPECTFUL),
        (5, Level.RESPECTFUL),
        (4.5, Level.NEUTRAL),
        (1, Level.NEUTRAL),
        (0.5, Level.DISAPPOINTED),
        (0, Level.DISAPPOINTED),
        (-5, Level.DISAPPOINTED),
        (-5.5, Level.JUDGY),
        (-9, Level.JUDGY),
        (-10, Level.DONE_WITH_YOU),
    ],
)
def test_level_thresholds_are_inclusive(score, level):
    assert level_for_score(score) == level


def test_score_is_the_sum_of_deltas_regardless_of_path():
    deltas = [3, -2, 0.5, -7, 4, -1, 1]
    a = ScoreEngine()
    b = ScoreEngine()

    for d in deltas:
        a.change_score(d)
    for d in reversed(deltas):
        b.change_score(d)

    assert a.get_score() == b.get_score() == sum(deltas)
    assert a.get_level() == b.get_level() == level_for_score(sum(deltas))


def test_every_call_emits_one_score_event_even_for_zero_delta():
    engine = ScoreEngine()
    log = score_log(engine)

    engine.change_score(0, "nothing")
    engine.change_score("garbage", "still nothing")

    assert log.deltas == [0, 0]
    assert log.levels == []


def test_score_event_is_delivered_before_level_event():
    engine = ScoreEngine()
    log = score_log(engine)

    engine.change_score(5, "big")

    assert log.order == ["score", "level"]


def test_reset_score_sets_exact_value_and_emits():
    engine = ScoreEngine()
    engine.change_score(3)
    log = score_log(engine)

    snap = engine.reset_score(-10)

    assert snap.score == -10
    assert snap.level == Level.DONE_WITH_YOU
    assert log.scores[0].previous_score == 3
    assert log.scores[0].delta == -13
    assert log.scores[0].reason == "reset"
    assert log.levels[0].previous_level == Level.NEUTRAL


def test_reset_score_defaults_to_zero():
    engine = ScoreEngine(7)
    engine.reset_score()
    assert engine.get_score() == 0
    assert engine.get_level() == Level.DISAPPOINTED


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0),
        ("abc", 0),
        ("", 0),
        (" 3 ", 3),
        ("-2.5", -2.5),
        (float("nan"), 0),
        (float("inf"), 0),
        ("-inf", 0),
        (True, 1),
        (False, 0),
        (2.0, 2),
        (object(), 0),
        ([1], 0),
    ],
)
def test_coerce_number_never_raises(raw, expected):
    out = coerce_number(raw)
    assert out == expected
    assert not (isinstance(out, float) and math.isnan(out))


def test_non_numeric_delta_is_treated_as_zero():
    engine = ScoreEngine(2)
    engine.change_score("abc")
    engine.change_score(None)
    engine.change_score(float("nan"))
    assert engine.get_score() == 2


def test_non_callable_handler_is_ignored_and_unsubscribe_is_safe():
    engine = ScoreEngine()
    unsubscribe = engine.on_score_change("not a function")  # type: ignore[arg-type]

    engine.change_score(1)
    unsubscribe()
    unsubscribe()

    assert len(engine.score_changes) == 0


def test_duplicate_subscription_delivers_once_and_unsubscribe_stops_delivery():
    engine = ScoreEngine()
    seen = []

    def handler(e):
        seen.append(e.score)

    off = engine.on_score_change(handler)
    engine.on_score_change(handler)
    engine.change_score(1)
    off()
    engine.change_score(1)

    assert seen == [1]


def test_register_hook_routes_by_kind():
    engine = ScoreEngine()
    scores, levels = [], []

    engine.register_hook("score", lambda e: scores.append(e.score))
    engine.register_hook("level", lambda e: levels.append(e.level))
    off = engine.register_hook("nonsense", lambda e: None)
    off()

    engine.change_score(5)

    assert scores == [5]
    assert levels == [Level.RESPECTFUL]


def test_handler_may_reenter_the_engine():
    """Payloads describe the mutation that produced them, even when a handler nests another."""
    engine = ScoreEngine()
    log = score_log(engine)

    def bounce(e):
        if e.reason == "first":
            engine.change_score(-1, "nested")

    engine.on_score_change(bounce)
    engine.change_score(2, "first")

    first = next(e for e in log.scores if e.reason == "first")
    nested = next(e for e in log.scores if e.reason == "nested")
    assert (first.previous_score, first.score, first.delta) == (0, 2, 2)
    assert (nested.previous_score, nested.score, nested.delta) == (2, 1, -1)
    assert engine.get_score() == 1


def test_concurrent_mutations_are_not_lost():
    engine = ScoreEngine()
    calls = []
    engine.on_score_change(lambda e: calls.append(e.delta))

    def worker():
        for _ in range(250):
            engine.change_score(1)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert engine.get_score() == 1000
    assert len(calls) == 1000


def test_raising_subscriber_does_not_swallow_the_level_change(caplog):
    engine = ScoreEngine()

    def boom(e):
        raise RuntimeError("boom")

    off = engine.on_score_change(boom)
    log = score_log(engine)

    with caplog.at_level(logging.ERROR):
        snap = engine.change_score(1, "x")
    off()
    engine.change_score(0)

    assert snap.level == Level.NEUTRAL
    assert log.deltas == [1, 0]
    assert [(e.previous_level, e.level) for e in log.levels] == [(Level.DISAPPOINTED, Level.NEUTRAL)]
    assert "failed" in caplog.text


def test_raising_subscriber_does_not_abort_a_clock_advance():
    clock = ManualClock()
    engine = ScoreEngine()
    engine.on_score_change(lambda e: 1 / 0)
    clock.call_later(100, lambda: engine.change_score(-1, "tick"))
    clock.call_later(200, lambda: engine.change_score(-1, "tock"))

    clock.advance_to(500)

    assert clock.now() == 500.0
    assert engine.get_score() == -2

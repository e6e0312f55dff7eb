"""
The easter egg bookkeeping is a pure reducer, so these tests drive it with
hand-built signals and never touch a clock or a listener.
"""
from __future__ import annotations

import pytest

from attitude_engine.config import EasterEggConfig
from attitude_engine.egg_state import (
    CheckSignal,
    ClickSignal,
    EggState,
    KeySignal,
    ResetSignal,
    ScoreSignal,
    ScrollSignal,
    TriggerPhase,
    TriggerRecord,
    normalize_key,
    reduce,
)
from attitude_engine.models import EggType

CFG = EasterEggConfig()


def _run(state, signals):
    fired = []
    for sig in signals:
        state, out = reduce(state, sig, CFG)
        fired.extend(out)
    return state, fired


def _spent() -> TriggerRecord:
    return TriggerRecord().fire(0.0)


def test_key_combo_matches_inside_noise_and_respects_cooldown():
    state, fired = _run(EggState(), [KeySignal(at=float(i), key=k) for i, k in enumerate("xFlAvOrY")])

    assert fired == [EggType.KEY_COMBO]
    assert state.combo_buffer == "LAVORY"
    assert state.key_combo.phase is TriggerPhase.FIRED

    state, fired = _run(state, [KeySignal(at=100.0 + i, key=k) for i, k in enumerate("FLAVOR")])
    assert fired == []

    later = 6.0 + CFG.combo_cooldown_ms + 1
    state, fired = _run(state, [KeySignal(at=later + i, key=k) for i, k in enumerate("FLAVOR")])
    assert fired == [EggType.KEY_COMBO]
    assert state.key_combo.fire_count == 2


@pytest.mark.parametrize("key", ["1", "Shift", "", "é", None, 3])
def test_non_letters_leave_the_buffer_alone(key):
    state = EggState(combo_buffer="FLA")
    new, fired = reduce(state, KeySignal(at=0.0, key=key), CFG)  # type: ignore[arg-type]
    assert new is state
    assert fired == ()
    assert normalize_key(key) is None


def test_click_master_needs_an_unbroken_streak():
    nine = [ClickSignal(at=float(i), interactive=True) for i in range(9)]
    state, fired = _run(EggState(), [*nine, ClickSignal(at=9.0, interactive=False), *nine])
    assert fired == []
    assert state.click_streak == 9

    state, fired = _run(state, [ClickSignal(at=20.0, interactive=True)])
    assert fired == [EggType.CLICK_MASTER]

    state, fired = _run(state, [ClickSignal(at=21.0 + i, interactive=True) for i in range(20)])
    assert fired == []
    assert state.click_master.phase is TriggerPhase.SPENT


def test_perfect_scroll_needs_slow_reading_all_the_way_down():
    samples = [ScrollSignal(at=1000.0 * i, y=100.0 * i, depth=i / 10) for i in range(11)]
    state, fired = _run(EggState(), samples)

    assert fired == [EggType.PERFECT_SCROLL]
    assert state.perfect_scroll.fired_at == 10000.0


def test_a_fast_jump_restarts_the_slow_reading_clock():
    samples = [ScrollSignal(at=1000.0 * i, y=100.0 * i, depth=i / 10) for i in range(5)]
    samples.append(ScrollSignal(at=4100.0, y=930.0, depth=0.93))  # ~5 px/ms
    samples.append(ScrollSignal(at=9000.0, y=1000.0, depth=1.0))
    state, fired = _run(EggState(), samples)

    assert fired == []
    assert state.slow_scroll_since == 9000.0


def test_high_score_needs_thirty_calm_seconds_then_cools_down():
    state, fired = _run(EggState(), [ScoreSignal(at=0.0, score=5, delta=5), CheckSignal(at=29999.0, score=5)])
    assert fired == []

    state, fired = _run(state, [CheckSignal(at=30000.0, score=5)])
    assert fired == [EggType.HIGH_SCORE]
    assert state.high_score.cooldown_until == 90000.0

    state, fired = _run(state, [CheckSignal(at=60000.0, score=5)])
    assert fired == []

    state, fired = _run(state, [CheckSignal(at=90000.0, score=5)])
    assert fired == [EggType.HIGH_SCORE]


def test_a_negative_delta_restarts_the_high_score_window():
    state, fired = _run(
        EggState(),
        [
            ScoreSignal(at=0.0, score=7, delta=7),
            ScoreSignal(at=10000.0, score=6, delta=-1),
            CheckSignal(at=30000.0, score=6),
        ],
    )
    assert fired == []
    assert state.high_score_since == 10000.0

    state, fired = _run(state, [CheckSignal(at=40000.0, score=6)])
    assert fired == [EggType.HIGH_SCORE]


def test_dropping_below_five_clears_the_window():
    state, _ = _run(EggState(), [ScoreSignal(at=0.0, score=5, delta=5), CheckSignal(at=10000.0, score=4)])
    assert state.high_score_since is None


def test_super_fires_when_all_three_hold_and_is_reearned_after_a_negative_delta():
    state = EggState(click_master=_spent(), perfect_scroll=_spent())

    state, fired = _run(state, [ScoreSignal(at=0.0, score=6, delta=6), CheckSignal(at=30000.0, score=6)])
    assert fired == [EggType.HIGH_SCORE, EggType.SUPER]

    state, fired = _run(state, [ScoreSignal(at=31000.0, score=5, delta=-1)])
    assert fired == []
    assert state.super_egg.phase is TriggerPhase.READY
    assert state.high_score.phase is TriggerPhase.READY

    # Window satisfied at 61000, cooldown from the first firing until 90000.
    state, fired = _run(state, [CheckSignal(at=61000.0, score=5)])
    assert fired == []
    state, fired = _run(state, [CheckSignal(at=90000.0, score=5)])
    assert fired == [EggType.HIGH_SCORE, EggType.SUPER]


def test_super_does_not_fire_with_a_missing_precondition():
    state = EggState(click_master=_spent())
    state, fired = _run(state, [ScoreSignal(at=0.0, score=6, delta=6), CheckSignal(at=30000.0, score=6)])
    assert fired == [EggType.HIGH_SCORE]
    assert state.super_egg.phase is TriggerPhase.READY


def test_reset_returns_every_trigger_to_ready():
    state = EggState(click_master=_spent(), perfect_scroll=_spent(), click_streak=4, combo_buffer="FL")
    new, fired = reduce(state, ResetSignal(at=5.0), CFG)

    assert new == EggState()
    assert fired == ()


def test_reduce_never_mutates_its_input():
    before = EggState()
    after, _ = reduce(before, ClickSignal(at=0.0, interactive=True), CFG)

    assert before.click_streak == 0
    assert after.click_streak == 1


def test_unknown_signal_is_rejected():
    with pytest.raises(TypeError):
        reduce(EggState(), object(), CFG)  # type: ignore[arg-type]


def test_custom_secret_is_case_insensitive():
    cfg = EasterEggConfig.from_options({"secret_combo": "taco"})
    state = EggState()
    fired = []
    for i, k in enumerate("TACO"):
        state, out = reduce(state, KeySignal(at=float(i), key=k), cfg)
        fired.extend(out)
    assert fired == [EggType.KEY_COMBO]

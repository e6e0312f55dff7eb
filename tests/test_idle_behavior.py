from __future__ import annotations

from attitude_engine.environment import InputType
from attitude_engine.idle_behavior import REASON_PENALTY, REASON_WARN, IdleBehavior
from tests._support.session_helpers import make_world, score_log


def _started(options=None):
    world = make_world()
    idle = IdleBehavior(world.engine, world.source, world.clock, options)
    idle.start()
    return world, idle


def test_warn_then_penalty_then_activity_starts_a_new_episode():
    world, idle = _started()
    log = score_log(world.engine)

    world.clock.advance_to(6000)
    assert log.deltas == [-1]
    assert log.reasons == [REASON_WARN]

    world.clock.advance_to(21000)
    assert log.deltas == [-1, -2]
    assert log.reasons[-1] == REASON_PENALTY

    world.clock.advance_to(21500)
    world.source.move_pointer()
    assert idle.idle_ms() == 0

    world.clock.advance_to(27500)
    assert log.deltas == [-1, -2, -1]


def test_each_outcome_fires_once_per_episode():
    world, _ = _started()
    log = score_log(world.engine)

    world.clock.advance_to(60000)

    assert log.deltas == [-1, -2]


def test_any_activity_kind_resets_the_episode():
    world, _ = _started()
    log = score_log(world.engine)

    kinds = [InputType.POINTER_MOVE, InputType.KEY_DOWN, InputType.POINTER_DOWN, InputType.TOUCH_START]
    for i, kind in enumerate(kinds, start=1):
        world.clock.advance_to(4000 * i)
        world.source.emit(kind)

    assert log.scores == []


def test_warning_window_has_an_upper_bound():
    world, _ = _started({"idle_check_every_ms": 12000})
    log = score_log(world.engine)

    world.clock.advance_to(24000)

    # The only check inside the episode before 20 s sees 12 s idle: past the warning window.
    assert log.reasons == [REASON_PENALTY]


def test_stop_cancels_the_poll_timer():
    world, idle = _started()
    assert world.clock.pending() == 1

    idle.stop()

    assert world.clock.pending() == 0
    assert idle.idle_ms() is None

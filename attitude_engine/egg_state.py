from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from attitude_engine.config import EasterEggConfig
from attitude_engine.models import EggType, Number

HIGH_SCORE_THRESHOLD = 5


class TriggerPhase(str, Enum):
    """
    READY -> may fire.
    FIRED -> fired, waiting for its cooldown (HighScore, KeyCombo).
    SPENT -> fired, lifetime-scoped (PerfectScroll, ClickMaster, Super).
    """

    READY = "READY"
    FIRED = "FIRED"
    SPENT = "SPENT"


@dataclass(frozen=True, slots=True)
class TriggerRecord:
    phase: TriggerPhase = TriggerPhase.READY
    fired_at: float | None = None
    cooldown_until: float | None = None
    fire_count: int = 0

    @property
    def holds(self) -> bool:
        """True while the trigger counts as earned."""
        return self.phase is not TriggerPhase.READY

    def fire(self, at: float, *, cooldown_ms: float | None = None) -> TriggerRecord:
        if cooldown_ms is None:
            return replace(self, phase=TriggerPhase.SPENT, fired_at=at, fire_count=self.fire_count + 1)
        return replace(
            self,
            phase=TriggerPhase.FIRED,
            fired_at=at,
            cooldown_until=at + cooldown_ms,
            fire_count=self.fire_count + 1,
        )

    def rearm(self) -> TriggerRecord:
        return replace(self, phase=TriggerPhase.READY)


# Transition table (signal -> effect on each record):
#
#   trigger        READY -> held                           held -> READY
#   -------------  --------------------------------------  ------------------------------
#   HIGH_SCORE     score >= 5 sustained for the window,    cooldown elapsed (check),
#                  no negative delta in the window,        negative score delta
#                  previous cooldown elapsed   (FIRED)
#   PERFECT_SCROLL deep + slow long enough      (SPENT)    full reset only
#   CLICK_MASTER   interactive streak hits target (SPENT)  full reset only
#   KEY_COMBO      buffer == secret             (FIRED)    cooldown elapsed (next key)
#   SUPER          HIGH_SCORE & CLICK_MASTER &             negative score delta
#                  PERFECT_SCROLL all hold      (SPENT)


@dataclass(frozen=True, slots=True)
class EggState:
    high_score: TriggerRecord = TriggerRecord()
    perfect_scroll: TriggerRecord = TriggerRecord()
    click_master: TriggerRecord = TriggerRecord()
    key_combo: TriggerRecord = TriggerRecord()
    super_egg: TriggerRecord = TriggerRecord()

    high_score_since: float | None = None
    last_negative_at: float | None = None
    slow_scroll_since: float | None = None
    last_scroll_y: float | None = None
    last_scroll_at: float | None = None
    click_streak: int = 0
    combo_buffer: str = ""

    def record(self, egg: EggType) -> TriggerRecord:
        return {
            EggType.HIGH_SCORE: self.high_score,
            EggType.PERFECT_SCROLL: self.perfect_scroll,
            EggType.CLICK_MASTER: self.click_master,
            EggType.KEY_COMBO: self.key_combo,
            EggType.SUPER: self.super_egg,
        }[EggType(egg)]


# ----------------------------
# Signals
# ----------------------------

@dataclass(frozen=True, slots=True)
class ScoreSignal:
    at: float
    score: Number
    delta: Number


@dataclass(frozen=True, slots=True)
class CheckSignal:
    at: float
    score: Number


@dataclass(frozen=True, slots=True)
class ClickSignal:
    at: float
    interactive: bool


@dataclass(frozen=True, slots=True)
class ScrollSignal:
    at: float
    y: float
    depth: float


@dataclass(frozen=True, slots=True)
class KeySignal:
    at: float
    key: str


@dataclass(frozen=True, slots=True)
class ResetSignal:
    at: float


Signal = Union[ScoreSignal, CheckSignal, ClickSignal, ScrollSignal, KeySignal, ResetSignal]

Fired = tuple[EggType, ...]


def reduce(state: EggState, signal: Signal, config: EasterEggConfig) -> tuple[EggState, Fired]:
    """
    Pure transition function: (state, signal) -> (new state, eggs fired in order).

    Never mutates its inputs. The caller owns timing (signal.at) and side effects.
    """
    if isinstance(signal, ScoreSignal):
        return _on_score(state, signal, config)
    if isinstance(signal, CheckSignal):
        return _check(state, signal.at, signal.score, config)
    if isinstance(signal, ClickSignal):
        return _on_click(state, signal, config)
    if isinstance(signal, ScrollSignal):
        return _on_scroll(state, signal, config)
    if isinstance(signal, KeySignal):
        return _on_key(state, signal, config)
    if isinstance(signal, ResetSignal):
        return EggState(), ()
    raise TypeError(f"unknown easter egg signal: {signal!r}")


def _on_score(state: EggState, sig: ScoreSignal, config: EasterEggConfig) -> tuple[EggState, Fired]:
    high_score = state.high_score
    super_egg = state.super_egg
    since = state.high_score_since
    last_negative_at = state.last_negative_at

    if sig.delta < 0:
        last_negative_at = sig.at
        since = None
        high_score = high_score.rearm()
        super_egg = super_egg.rearm()

    if sig.score >= HIGH_SCORE_THRESHOLD:
        if since is None:
            since = sig.at
    else:
        since = None

    state = replace(
        state,
        high_score=high_score,
        super_egg=super_egg,
        high_score_since=since,
        last_negative_at=last_negative_at,
    )
    return _check(state, sig.at, sig.score, config)


def _check(state: EggState, at: float, score: Number, config: EasterEggConfig) -> tuple[EggState, Fired]:
    fired: list[EggType] = []
    high_score = state.high_score
    since = state.high_score_since

    if high_score.phase is TriggerPhase.FIRED and at >= (high_score.cooldown_until or 0.0):
        high_score = high_score.rearm()

    if score < HIGH_SCORE_THRESHOLD:
        since = None
    else:
        if since is None:
            since = at
        window = config.high_score_window_ms
        sustained = at - since >= window
        calm = state.last_negative_at is None or at - state.last_negative_at >= window
        cooled = high_score.cooldown_until is None or at >= high_score.cooldown_until
        if high_score.phase is TriggerPhase.READY and sustained and calm and cooled:
            high_score = high_score.fire(at, cooldown_ms=config.high_score_cooldown_ms)
            fired.append(EggType.HIGH_SCORE)

    state = replace(state, high_score=high_score, high_score_since=since)
    state, more = _evaluate_super(state, at)
    return state, (*fired, *more)


def _evaluate_super(state: EggState, at: float) -> tuple[EggState, Fired]:
    if state.super_egg.phase is not TriggerPhase.READY:
        return state, ()
    if state.high_score.holds and state.click_master.holds and state.perfect_scroll.holds:
        return replace(state, super_egg=state.super_egg.fire(at)), (EggType.SUPER,)
    return state, ()


def _on_click(state: EggState, sig: ClickSignal, config: EasterEggConfig) -> tuple[EggState, Fired]:
    if not sig.interactive:
        return replace(state, click_streak=0), ()

    streak = state.click_streak + 1
    state = replace(state, click_streak=streak)
    if state.click_master.phase is TriggerPhase.READY and streak >= config.click_streak_target:
        state = replace(state, click_master=state.click_master.fire(sig.at))
        state, more = _evaluate_super(state, sig.at)
        return state, (EggType.CLICK_MASTER, *more)
    return state, ()


def _on_scroll(state: EggState, sig: ScrollSignal, config: EasterEggConfig) -> tuple[EggState, Fired]:
    last_y = state.last_scroll_y if state.last_scroll_y is not None else sig.y
    last_at = state.last_scroll_at if state.last_scroll_at is not None else sig.at
    speed = abs(sig.y - last_y) / max(1.0, sig.at - last_at)

    slow_since = state.slow_scroll_since
    if speed <= config.slow_scroll_speed_threshold:
        if slow_since is None:
            slow_since = sig.at
    else:
        slow_since = None

    state = replace(state, last_scroll_y=sig.y, last_scroll_at=sig.at, slow_scroll_since=slow_since)

    if (
            state.perfect_scroll.phase is TriggerPhase.READY
            and sig.depth >= config.perfect_scroll_depth
            and slow_since is not None
            and sig.at - slow_since >= config.perfect_scroll_duration_ms
    ):
        state = replace(state, perfect_scroll=state.perfect_scroll.fire(sig.at))
        state, more = _evaluate_super(state, sig.at)
        return state, (EggType.PERFECT_SCROLL, *more)
    return state, ()


def normalize_key(key: object) -> str | None:
    """Single ASCII letter, upper-cased; anything else is ignored."""
    if not isinstance(key, str) or len(key) != 1:
        return None
    upper = key.upper()
    if not ("A" <= upper <= "Z"):
        return None
    return upper


def _on_key(state: EggState, sig: KeySignal, config: EasterEggConfig) -> tuple[EggState, Fired]:
    letter = normalize_key(sig.key)
    if letter is None:
        return state, ()

    secret = config.secret_combo.upper()
    buffer = (state.combo_buffer + letter)[-len(secret):]
    key_combo = state.key_combo
    if key_combo.phase is TriggerPhase.FIRED and sig.at > (key_combo.cooldown_until or 0.0):
        key_combo = key_combo.rearm()

    state = replace(state, combo_buffer=buffer, key_combo=key_combo)
    if buffer == secret and key_combo.phase is TriggerPhase.READY:
        state = replace(state, key_combo=key_combo.fire(sig.at, cooldown_ms=config.combo_cooldown_ms))
        state, more = _evaluate_super(state, sig.at)
        return state, (EggType.KEY_COMBO, *more)
    return state, ()

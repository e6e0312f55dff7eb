from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, ClassVar, Mapping, TypeVar


class ConfigError(ValueError):
    """Raised when detector options or a config file fail validation."""


C = TypeVar("C", bound="_Options")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class _Options:
    """
    Shallow-merge behavior shared by every detector config.

    The default value of each field doubles as its schema:
      - int default   -> int required
      - float default -> any number
      - str default   -> non-empty string
      - tuple default -> array of non-empty strings (stored upper-cased)
    Numbers must be >= 0 unless listed in _SIGNED, and > 0 if listed in _POSITIVE.
    """

    _SIGNED: ClassVar[frozenset[str]] = frozenset()
    _POSITIVE: ClassVar[frozenset[str]] = frozenset()

    @classmethod
    def from_options(cls: type[C], options: Mapping[str, Any] | C | None = None, *, label: str = "") -> C:
        return cls().merged(options, label=label)

    def merged(self: C, options: Mapping[str, Any] | C | None, *, label: str = "") -> C:
        if options is None:
            return self
        if isinstance(options, type(self)):
            return options
        label = label or type(self).__name__
        if not isinstance(options, Mapping):
            raise ConfigError(f"{label} must be an object")

        known = {f.name for f in fields(self)}  # type: ignore[arg-type]
        updates: dict[str, Any] = {}
        for key, value in options.items():
            name = key if key in known else _snake(str(key))
            if name not in known:
                raise ConfigError(f"{label}.{key} is not a recognized option")
            updates[name] = self._check(label, name, value)

        result = replace(self, **updates)  # type: ignore[type-var]
        result._validate(label)
        return result

    def _check(self, label: str, name: str, value: Any) -> Any:
        default = getattr(self, name)
        where = f"{label}.{name}"

        if isinstance(default, tuple):
            if not isinstance(value, (list, tuple)):
                raise ConfigError(f"{where} must be an array of strings")
            out: list[str] = []
            for i, item in enumerate(value):
                if not isinstance(item, str) or not item.strip():
                    raise ConfigError(f"{where}[{i}] must be a non-empty string")
                out.append(item.strip().upper())
            return tuple(out)

        if isinstance(default, str):
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{where} must be a non-empty string")
            return value

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{where} must be a number")
        if isinstance(default, int) and not isinstance(value, int):
            raise ConfigError(f"{where} must be an int")
        if name in self._POSITIVE and value <= 0:
            raise ConfigError(f"{where} must be > 0")
        if name not in self._SIGNED and value < 0:
            raise ConfigError(f"{where} must be >= 0")
        return value

    def _validate(self, label: str) -> None:
        return None


@dataclass(frozen=True)
class ScrollConfig(_Options):
    # Speeds are px/ms: 1.2 px/ms is 1200 px/s.
    fast_speed: float = 1.2
    calm_speed: float = 0.2
    # Movements shorter than this (px) are noise.
    min_distance: float = 120.0
    fast_cooldown: float = 2000.0
    calm_cooldown: float = 3000.0
    ultra_fast_bottom_ms: float = 2000.0


DEFAULT_NON_INTERACTIVE_TAGS = ("DIV", "SPAN", "P", "H1", "H2", "H3", "H4", "H5", "H6")


@dataclass(frozen=True)
class ClickConfig(_Options):
    _SIGNED: ClassVar[frozenset[str]] = frozenset({"interactive_reward_delta"})
    _POSITIVE: ClassVar[frozenset[str]] = frozenset({"click_spam_count"})

    click_window_ms: float = 2000.0
    click_spam_count: int = 8
    click_spam_cooldown: float = 3000.0
    interactive_reward_delta: int = 1
    interactive_reward_reason: str = "Polite click"
    interactive_reward_cooldown: float = 1200.0
    non_interactive_tags: tuple[str, ...] = DEFAULT_NON_INTERACTIVE_TAGS


@dataclass(frozen=True)
class IdleConfig(_Options):
    _POSITIVE: ClassVar[frozenset[str]] = frozenset({"idle_check_every_ms"})

    idle_warn_ms: float = 5000.0
    idle_warn_max_ms: float = 10000.0
    idle_penalty_ms: float = 20000.0
    idle_check_every_ms: float = 1000.0

    def _validate(self, label: str) -> None:
        if self.idle_warn_max_ms < self.idle_warn_ms:
            raise ConfigError(f"{label}.idle_warn_max_ms must be >= idle_warn_ms")


@dataclass(frozen=True)
class EasterEggConfig(_Options):
    _POSITIVE: ClassVar[frozenset[str]] = frozenset({"check_every_ms", "click_streak_target"})

    perfect_scroll_depth: float = 0.93
    perfect_scroll_duration_ms: float = 8000.0
    slow_scroll_speed_threshold: float = 0.33
    click_streak_target: int = 10
    high_score_window_ms: float = 30000.0
    high_score_cooldown_ms: float = 60000.0
    combo_cooldown_ms: float = 40000.0
    egg_duration_ms: float = 5200.0
    check_every_ms: float = 1000.0
    secret_combo: str = "FLAVOR"

    def _validate(self, label: str) -> None:
        if self.perfect_scroll_depth > 1:
            raise ConfigError(f"{label}.perfect_scroll_depth must be in [0, 1]")
        combo = self.secret_combo
        if not (combo.isascii() and combo.isalpha()):
            raise ConfigError(f"{label}.secret_combo must contain only letters A-Z")


@dataclass(frozen=True)
class SessionConfig:
    scroll: ScrollConfig = field(default_factory=ScrollConfig)
    click: ClickConfig = field(default_factory=ClickConfig)
    idle: IdleConfig = field(default_factory=IdleConfig)
    easter_eggs: EasterEggConfig = field(default_factory=EasterEggConfig)

    SECTIONS: ClassVar[tuple[str, ...]] = ("scroll", "click", "idle", "easter_eggs")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SessionConfig:
        if not isinstance(raw, Mapping):
            raise ConfigError("config root must be an object")
        unknown = [k for k in raw if k not in cls.SECTIONS]
        if unknown:
            raise ConfigError(
                f"unknown config section {unknown[0]!r}; expected one of: {', '.join(cls.SECTIONS)}"
            )
        return cls(
            scroll=ScrollConfig.from_options(raw.get("scroll"), label="scroll"),
            click=ClickConfig.from_options(raw.get("click"), label="click"),
            idle=IdleConfig.from_options(raw.get("idle"), label="idle"),
            easter_eggs=EasterEggConfig.from_options(raw.get("easter_eggs"), label="easter_eggs"),
        )


def load_config(path: Path) -> SessionConfig:
    """
    Load a session config JSON file.

      {
        "scroll": {"fast_speed": 1.5},
        "click": {"clickSpamCount": 6},
        "idle": {},
        "easter_eggs": {"secret_combo": "TACO"}
      }

    Every section is optional; missing options keep their defaults.
    """
    if not path.exists():
        raise ConfigError(f"file not found: {path}")
    if not path.is_file():
        raise ConfigError(f"not a file: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON: {e.msg} (line {e.lineno}, col {e.colno})") from e

    return SessionConfig.from_mapping(raw)

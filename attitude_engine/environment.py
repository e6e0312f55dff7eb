from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from attitude_engine.clock import Clock
from attitude_engine.pubsub import Channel, Unsubscribe, log_handler_error

INTERACTIVE_TAGS = frozenset({"BUTTON", "A", "INPUT", "SELECT", "TEXTAREA"})


class InputType(str, Enum):
    """Environment notifications the detectors listen to."""

    POINTER_MOVE = "pointermove"
    POINTER_DOWN = "pointerdown"
    TOUCH_START = "touchstart"
    KEY_DOWN = "keydown"
    SCROLL = "scroll"
    CLICK = "click"
    VISIBILITY_CHANGE = "visibilitychange"
    RESIZE = "resize"


@dataclass(frozen=True, slots=True)
class Target:
    """
    Minimal element model: a tag, an optional ARIA role, and the parent chain.
    Only what interactivity classification needs.
    """

    tag: str
    role: str | None = None
    parent: Target | None = None


def is_interactive(target: object) -> bool:
    """
    True when the target or any ancestor is a button/link/form control or
    carries role="button". Missing or malformed targets are never interactive.
    """
    node = target
    while node is not None:
        tag = getattr(node, "tag", None)
        if isinstance(tag, str) and tag.upper() in INTERACTIVE_TAGS:
            return True
        role = getattr(node, "role", None)
        if isinstance(role, str) and role.strip().lower() == "button":
            return True
        node = getattr(node, "parent", None)
    return False


def payload_number(data: dict[str, Any], key: str, fallback: float) -> float:
    """Read a finite numeric payload field, falling back when it is missing or malformed."""
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return float(fallback)
    if math.isnan(value) or math.isinf(value):
        return float(fallback)
    return float(value)


def tag_of(target: object) -> str:
    tag = getattr(target, "tag", None)
    return tag.upper() if isinstance(tag, str) else ""


@dataclass(slots=True)
class Viewport:
    """Document/window geometry the scroll, tab and resize detectors read."""

    scroll_y: float = 0.0
    scroll_height: float = 0.0
    client_height: float = 0.0
    width: float = 0.0
    height: float = 0.0
    visibility: str = "visible"


@dataclass(frozen=True, slots=True)
class InputEvent:
    type: InputType
    at: float
    target: Target | None = None
    data: dict[str, Any] = field(default_factory=dict)


InputHandler = Callable[[InputEvent], object]


class EventSource(ABC):
    """
    Delivers environment notifications to listeners.
    Detectors only depend on this interface and on viewport.
    """

    viewport: Viewport

    @abstractmethod
    def listen(self, event_type: InputType, handler: InputHandler) -> Unsubscribe: ...


class InMemoryEventSource(EventSource):
    """
    In-process event source for tests, replays and embedding.

    Mirrors a browser dispatcher: listeners run in registration order, and a
    listener that raises is logged without stopping delivery to the rest.
    """

    def __init__(self, clock: Clock, viewport: Viewport | None = None) -> None:
        self.clock = clock
        self.viewport = viewport if viewport is not None else Viewport()
        self._channels: dict[InputType, Channel[InputEvent]] = {
            t: Channel(t.value, on_error=log_handler_error) for t in InputType
        }

    def listen(self, event_type: InputType, handler: InputHandler) -> Unsubscribe:
        return self._channels[InputType(event_type)].subscribe(handler)

    def listener_count(self, event_type: InputType | None = None) -> int:
        if event_type is not None:
            return len(self._channels[InputType(event_type)])
        return sum(len(c) for c in self._channels.values())

    def dispatch(self, event: InputEvent) -> None:
        self._channels[event.type].publish(event)

    def feed(self, event: InputEvent) -> None:
        """Dispatch a recorded event, syncing the viewport from its payload first."""
        vp = self.viewport
        d = event.data
        if event.type == InputType.SCROLL:
            vp.scroll_y = payload_number(d, "y", vp.scroll_y)
            vp.scroll_height = payload_number(d, "scroll_height", vp.scroll_height)
            vp.client_height = payload_number(d, "client_height", vp.client_height)
        elif event.type == InputType.RESIZE:
            vp.width = payload_number(d, "width", vp.width)
            vp.height = payload_number(d, "height", vp.height)
        elif event.type == InputType.VISIBILITY_CHANGE and isinstance(d.get("state"), str):
            vp.visibility = d["state"]
        self.dispatch(event)

    def emit(self, event_type: InputType, target: Target | None = None, **data: Any) -> InputEvent:
        event = InputEvent(type=InputType(event_type), at=self.clock.now(), target=target, data=dict(data))
        self.dispatch(event)
        return event

    # ----------------------------
    # Convenience helpers
    # ----------------------------

    def click(self, target: Target | None = None) -> InputEvent:
        return self.emit(InputType.CLICK, target)

    def move_pointer(self) -> InputEvent:
        return self.emit(InputType.POINTER_MOVE)

    def press_key(self, key: str) -> InputEvent:
        return self.emit(InputType.KEY_DOWN, key=key)

    def type_text(self, text: str) -> None:
        for ch in text:
            self.press_key(ch)

    def scroll_to(
            self,
            y: float,
            *,
            scroll_height: float | None = None,
            client_height: float | None = None,
    ) -> InputEvent:
        vp = self.viewport
        vp.scroll_y = float(y)
        if scroll_height is not None:
            vp.scroll_height = float(scroll_height)
        if client_height is not None:
            vp.client_height = float(client_height)
        return self.emit(
            InputType.SCROLL,
            y=vp.scroll_y,
            scroll_height=vp.scroll_height,
            client_height=vp.client_height,
        )

    def set_visibility(self, state: str) -> InputEvent:
        self.viewport.visibility = state
        return self.emit(InputType.VISIBILITY_CHANGE, state=state)

    def resize(self, width: float, height: float) -> InputEvent:
        self.viewport.width = float(width)
        self.viewport.height = float(height)
        return self.emit(InputType.RESIZE, width=float(width), height=float(height))

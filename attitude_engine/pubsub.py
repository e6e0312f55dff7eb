from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]
ErrorHandler = Callable[[Callable[..., object], Exception], None]

logger = logging.getLogger(__name__)


def _noop() -> None:
    return None


def log_handler_error(handler: Callable[..., object], error: Exception) -> None:
    """on_error reporter for channels whose publishers must not fail: log and keep delivering."""
    logger.error("handler %r failed", handler, exc_info=error)


class Channel(Generic[T]):
    """
    Synchronous publish/subscribe for one event kind.

    - Set semantics: subscribing an equal callable twice is one registration.
    - Delivery runs in registration order.
    - Snapshot before iterate: handlers added during delivery miss the
      in-flight payload; handlers removed during delivery are skipped.
    - Handler exceptions propagate unless on_error is given, in which case
      they are reported there and delivery continues.
    """

    def __init__(self, name: str, *, on_error: ErrorHandler | None = None) -> None:
        self.name = name
        self._handlers: list[Callable[[T], object]] = []
        self._on_error = on_error

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Callable[[T], object]) -> Unsubscribe:
        if not callable(handler):
            return _noop
        if handler not in self._handlers:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, payload: T) -> None:
        for handler in list(self._handlers):
            if handler not in self._handlers:
                continue
            if self._on_error is None:
                handler(payload)
                continue
            try:
                handler(payload)
            except Exception as e:
                self._on_error(handler, e)

    def clear(self) -> None:
        self._handlers.clear()

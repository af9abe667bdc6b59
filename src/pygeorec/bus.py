"""Synchronous publish/subscribe primitive.

Listeners registered for an event name are called in registration order,
synchronously, from inside :meth:`EventBus.emit`. Two names are reserved:

* ``"unhandled"`` listeners receive ``(name, *args)`` for emissions that
  have no listener of their own.
* ``"any"`` listeners receive an :class:`EventEnvelope` for every emission.

A failing listener never prevents the remaining listeners of the same
emission from running. The first failure is re-raised once the whole
dispatch is done.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from typing import Any

_logger = logging.getLogger(__name__)

UNHANDLED = "unhandled"
ANY = "any"

Listener = Callable[..., Any]


@dataclasses.dataclass(frozen=True)
class EventEnvelope:
    name: str
    payload: Any = None
    args: tuple[Any, ...] = ()


class EventBus:
    """Minimal re-entrant event emitter."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, name: str, listener: Listener) -> Callable[[], None]:
        """Register *listener* for *name*; returns a callable that unregisters it."""
        self._listeners.setdefault(str(name), []).append(listener)
        return lambda: self.off(name, listener)

    def once(self, name: str, listener: Listener) -> Callable[[], None]:
        def _wrapper(*args: Any) -> Any:
            self.off(name, _wrapper)
            return listener(*args)

        return self.on(name, _wrapper)

    def off(self, name: str, listener: Listener) -> None:
        listeners = self._listeners.get(str(name))
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[str(name)]

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(str(name), ()))

    def emit(self, name: str, *args: Any) -> None:
        """Dispatch *args* to every listener of *name*."""
        key = str(name)
        errors: list[BaseException] = []

        # Copy so listeners may subscribe, unsubscribe or emit re-entrantly.
        direct = list(self._listeners.get(key, ()))
        if direct:
            self._dispatch(key, direct, args, errors)
        elif key not in (UNHANDLED, ANY):
            self._dispatch(UNHANDLED, list(self._listeners.get(UNHANDLED, ())), (key, *args), errors)

        if key != ANY:
            envelope = EventEnvelope(name=key, payload=args[0] if args else None, args=args)
            self._dispatch(ANY, list(self._listeners.get(ANY, ())), (envelope,), errors)

        if errors:
            raise errors[0]

    @staticmethod
    def _dispatch(name: str, listeners: list[Listener], args: tuple[Any, ...], errors: list[BaseException]) -> None:
        for listener in listeners:
            try:
                listener(*args)
            except Exception as exc:
                _logger.debug("Listener for %r failed", name, exc_info=True)
                errors.append(exc)

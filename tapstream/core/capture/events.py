"""Per-channel listener registry with synchronous, ordered dispatch."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from ...logging import get_logger

LOGGER = get_logger(__name__)

Listener = Callable[..., Any]


class CaptureEvent(str, Enum):
    """Event channels published by a capture session."""

    DATA = "data"
    START = "start"
    STOP = "stop"
    ERROR = "error"
    PERMISSION_REQUIRED = "permission-required"
    LOG = "log"


EventName = Union[CaptureEvent, str]


def _channel(event: EventName) -> CaptureEvent:
    try:
        return CaptureEvent(event)
    except ValueError as exc:
        raise ValueError(f"Unknown capture event: {event!r}") from exc


class EventEmitter:
    """Registry mapping each channel to its listeners in subscription order.

    Listeners run on the caller's thread during :meth:`emit`. A listener that
    raises is logged and the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: Dict[CaptureEvent, List[Listener]] = {event: [] for event in CaptureEvent}

    def on(self, event: EventName, listener: Listener) -> Listener:
        self._listeners[_channel(event)].append(listener)
        return listener

    def once(self, event: EventName, listener: Listener) -> Listener:
        """Subscribe ``listener`` for a single dispatch; returns the wrapper."""

        channel = _channel(event)

        def wrapper(*args: Any) -> Any:
            self.off(channel, wrapper)
            return listener(*args)

        self._listeners[channel].append(wrapper)
        return wrapper

    def off(self, event: EventName, listener: Listener) -> None:
        listeners = self._listeners[_channel(event)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners[_channel(event)])

    def remove_all_listeners(self, event: Optional[EventName] = None) -> None:
        if event is None:
            for listeners in self._listeners.values():
                listeners.clear()
        else:
            self._listeners[_channel(event)].clear()

    def emit(self, event: EventName, *args: Any) -> int:
        """Dispatch ``args`` to every listener of ``event``; returns the count."""

        channel = _channel(event)
        listeners = list(self._listeners[channel])
        for listener in listeners:
            try:
                listener(*args)
            except Exception:  # noqa: BLE001 - one listener must not starve the rest
                LOGGER.exception("Listener for %r event raised", channel.value)
        return len(listeners)


__all__ = ["CaptureEvent", "EventEmitter", "EventName", "Listener"]

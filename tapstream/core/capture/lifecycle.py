"""Lifecycle state machine for one capture session.

Transitions are a pure function of the current state and an incoming
signal, so the controller's behaviour can be checked without a process.
"""

from __future__ import annotations

from enum import Enum

from .base import AlreadyStartedError, NotRunningError


class LifecycleState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (LifecycleState.STOPPED, LifecycleState.ERRORED)

    @property
    def is_active(self) -> bool:
        return self in (LifecycleState.STARTING, LifecycleState.RUNNING)


class Signal(str, Enum):
    """Inputs that can move a session between states."""

    START_REQUESTED = "start_requested"
    STREAM_STARTED = "stream_started"
    STOP_REQUESTED = "stop_requested"
    STREAM_STOPPED = "stream_stopped"
    PROCESS_EXITED = "process_exited"
    FAILED = "failed"


def transition(state: LifecycleState, signal: Signal) -> LifecycleState:
    """Return the state that follows ``state`` when ``signal`` arrives.

    Caller requests that do not fit raise :class:`AlreadyStartedError` or
    :class:`NotRunningError`. Stream and process signals that do not apply
    leave the state unchanged. Terminal states never change.
    """

    if signal is Signal.START_REQUESTED:
        if state is not LifecycleState.IDLE:
            raise AlreadyStartedError(f"Capture cannot start while {state.value}")
        return LifecycleState.STARTING

    if signal is Signal.STOP_REQUESTED:
        if not state.is_active:
            raise NotRunningError(f"Capture cannot stop while {state.value}")
        return LifecycleState.STOPPING

    if state.is_terminal:
        return state

    if signal is Signal.STREAM_STARTED:
        if state is LifecycleState.STARTING:
            return LifecycleState.RUNNING
        return state

    if signal is Signal.STREAM_STOPPED:
        if state is LifecycleState.RUNNING:
            return LifecycleState.STOPPING
        return state

    if signal is Signal.PROCESS_EXITED:
        if state is LifecycleState.IDLE:
            return state
        return LifecycleState.STOPPED

    if signal is Signal.FAILED:
        return LifecycleState.ERRORED

    raise ValueError(f"Unhandled lifecycle signal: {signal!r}")


__all__ = ["LifecycleState", "Signal", "transition"]

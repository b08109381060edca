"""Capture session driving the external system audio capture process."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Any, List, Optional, Pattern

from ...config import Settings, get_settings
from ...data.models import CaptureOptions, LogRecord, MessageType
from ...logging import get_logger
from .arguments import build_arguments
from .base import (
    CaptureAbortedError,
    CaptureError,
    CapturePermissionError,
    ProcessExitError,
    SpawnError,
    StartTimeoutError,
)
from .decoder import decode_stream
from .events import CaptureEvent, EventEmitter, EventName, Listener
from .forwarder import iter_chunks
from .lifecycle import LifecycleState, Signal, transition
from .permissions import (
    PERMISSION_PATTERNS,
    compile_patterns,
    is_fatal_permission_denial,
    mentions_permission,
)

LOGGER = get_logger(__name__)
PROCESS_LOGGER = get_logger("tapstream.process")

_RECORD_LEVELS = {
    MessageType.ERROR: logging.ERROR,
    MessageType.DEBUG: logging.DEBUG,
}


def _resolve_binary(binary: str) -> str:
    """Return the executable path for ``binary``, preferring a PATH lookup."""

    found = shutil.which(binary)
    if found:
        return found
    return str(Path(binary))


def _retrieve_exception(future: "asyncio.Future[Any]") -> None:
    # Failures are also published on the error channel; callers may not await.
    if not future.cancelled():
        future.exception()


class AudioTapCapture:
    """One capture session backed by one capture process.

    ``start()`` and ``stop()`` validate the request immediately, raising
    :class:`~tapstream.core.capture.base.InvalidStateError` on misuse, and
    return a future. The start future completes once the process reports
    ``stream_start``; the stop future completes once the process has exited.

    Listeners subscribe per channel with :meth:`on`:

    * ``data`` receives each :class:`AudioChunk`.
    * ``start`` and ``stop`` receive no arguments.
    * ``error`` receives the :class:`CaptureError` that ended the session.
    * ``permission-required`` receives no arguments.
    * ``log`` receives each :class:`LogRecord`.
    """

    def __init__(
        self,
        options: Optional[CaptureOptions] = None,
        *,
        binary: Optional[str] = None,
        settings: Optional[Settings] = None,
        permission_patterns: Optional[List[str]] = None,
    ) -> None:
        self.options = options or CaptureOptions()
        self._settings = settings or get_settings()
        self._binary = binary or self._settings.binary
        self._arguments = build_arguments(self.options)
        self._permission_re: Pattern[str] = compile_patterns(permission_patterns or PERMISSION_PATTERNS)
        self._events = EventEmitter()
        self._state = LifecycleState.IDLE
        self._process: Optional[asyncio.subprocess.Process] = None
        self._supervisor: Optional["asyncio.Task[None]"] = None
        self._start_future: Optional["asyncio.Future[None]"] = None
        self._stop_future: Optional["asyncio.Future[None]"] = None
        self._kill_handle: Optional[asyncio.TimerHandle] = None
        self._start_timeout_handle: Optional[asyncio.TimerHandle] = None
        self._stop_requested = False
        self._error: Optional[CaptureError] = None
        self._last_record: Optional[LogRecord] = None

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------
    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def error(self) -> Optional[CaptureError]:
        return self._error

    @property
    def last_record(self) -> Optional[LogRecord]:
        return self._last_record

    @property
    def command(self) -> List[str]:
        return [_resolve_binary(self._binary), *self._arguments]

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    def on(self, event: EventName, listener: Listener) -> Listener:
        return self._events.on(event, listener)

    def once(self, event: EventName, listener: Listener) -> Listener:
        return self._events.once(event, listener)

    def off(self, event: EventName, listener: Listener) -> None:
        self._events.off(event, listener)

    def listener_count(self, event: EventName) -> int:
        return self._events.listener_count(event)

    def remove_all_listeners(self, event: Optional[EventName] = None) -> None:
        self._events.remove_all_listeners(event)

    def start(self) -> "asyncio.Future[None]":
        """Spawn the capture process and return a future for ``running``."""

        loop = asyncio.get_running_loop()
        self._state = transition(self._state, Signal.START_REQUESTED)

        self._start_future = loop.create_future()
        self._start_future.add_done_callback(_retrieve_exception)
        if self._settings.start_timeout is not None:
            self._start_timeout_handle = loop.call_later(
                self._settings.start_timeout, self._on_start_timeout
            )
        self._supervisor = loop.create_task(self._run())
        return self._start_future

    def stop(self) -> "asyncio.Future[None]":
        """Ask the process to exit and return a future for its exit."""

        loop = asyncio.get_running_loop()
        self._state = transition(self._state, Signal.STOP_REQUESTED)

        LOGGER.info("Stopping capture process")
        self._stop_requested = True
        self._stop_future = loop.create_future()
        self._stop_future.add_done_callback(_retrieve_exception)
        self._terminate()
        return self._stop_future

    async def wait_closed(self) -> LifecycleState:
        """Wait until the session reaches a terminal state and return it."""

        if self._supervisor is not None:
            await asyncio.shield(self._supervisor)
        return self._state

    async def __aenter__(self) -> "AudioTapCapture":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._state.is_active:
            stopping = self.stop()
            try:
                await stopping
            except CaptureError:
                if exc is None:
                    raise
        await self.wait_closed()

    # ------------------------------------------------------------------
    # Process supervision
    # ------------------------------------------------------------------
    async def _run(self) -> None:
        try:
            command = self.command
            process = await asyncio.create_subprocess_exec(  # noqa: S603 - fixed argument list
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as exc:
            error = SpawnError(f"Failed to launch capture binary {self._binary!r}: {exc}")
            error.__cause__ = exc
            self._fail(error)
            self._cancel_timers()
            return

        self._process = process
        LOGGER.info("Started capture process pid=%s: %s", process.pid, " ".join(command))

        if self._state is not LifecycleState.STARTING:
            # stop() or a start timeout arrived while the process was spawning.
            self._terminate()

        assert process.stdout is not None
        assert process.stderr is not None
        try:
            await asyncio.gather(
                self._pump_audio(process.stdout),
                self._pump_logs(process.stderr),
            )
        except Exception as exc:  # noqa: BLE001 - reported through the error channel
            LOGGER.exception("Reading from capture process pid=%s failed", process.pid)
            error = CaptureError(f"Reading from capture process failed: {exc}")
            error.__cause__ = exc
            self._fail(error)
        returncode = await process.wait()
        self._on_exit(returncode)

    async def _pump_audio(self, reader: asyncio.StreamReader) -> None:
        async for chunk in iter_chunks(
            reader,
            read_size=self._settings.read_size,
            sample_dtype=self.options.sample_dtype,
        ):
            if self._state is LifecycleState.ERRORED:
                continue
            self._events.emit(CaptureEvent.DATA, chunk)

    async def _pump_logs(self, reader: asyncio.StreamReader) -> None:
        async for record in decode_stream(reader, read_size=self._settings.read_size):
            self._handle_record(record)

    def _handle_record(self, record: LogRecord) -> None:
        self._last_record = record
        PROCESS_LOGGER.log(
            _RECORD_LEVELS.get(record.message_type, logging.INFO),
            "%s",
            record.message,
        )
        self._events.emit(CaptureEvent.LOG, record)

        if mentions_permission(record, self._permission_re):
            LOGGER.warning("Capture process reported a permission problem: %s", record.message)
            self._events.emit(CaptureEvent.PERMISSION_REQUIRED)
            if is_fatal_permission_denial(record, self._permission_re):
                self._fail(CapturePermissionError(record.message))
                return

        if record.message_type is MessageType.STREAM_START:
            self._on_stream_start()
        elif record.message_type is MessageType.STREAM_STOP:
            self._on_stream_stop()

    def _on_stream_start(self) -> None:
        previous = self._state
        self._state = transition(previous, Signal.STREAM_STARTED)
        if previous is LifecycleState.STARTING and self._state is LifecycleState.RUNNING:
            if self._start_timeout_handle is not None:
                self._start_timeout_handle.cancel()
                self._start_timeout_handle = None
            LOGGER.info("Capture stream started")
            self._events.emit(CaptureEvent.START)
            self._settle(self._start_future)

    def _on_stream_stop(self) -> None:
        previous = self._state
        self._state = transition(previous, Signal.STREAM_STOPPED)
        if previous is LifecycleState.RUNNING and self._state is LifecycleState.STOPPING:
            LOGGER.info("Capture process stopped streaming")

    def _on_exit(self, returncode: int) -> None:
        self._cancel_timers()
        if self._state.is_terminal:
            LOGGER.debug("Capture process exited with code %s after session ended", returncode)
            return

        # A negative code means our own terminate/kill ended the process.
        if returncode == 0 or (self._stop_requested and returncode < 0):
            self._state = transition(self._state, Signal.PROCESS_EXITED)
            LOGGER.info("Capture process exited with code %s", returncode)
            self._settle(
                self._start_future,
                CaptureAbortedError("Capture stopped before the stream started"),
            )
            self._events.emit(CaptureEvent.STOP)
            self._settle(self._stop_future)
            return

        self._fail(ProcessExitError(returncode, self._last_record))

    def _on_start_timeout(self) -> None:
        self._start_timeout_handle = None
        if self._state is LifecycleState.STARTING:
            self._fail(
                StartTimeoutError(
                    f"Capture stream did not start within {self._settings.start_timeout} seconds"
                )
            )

    def _fail(self, error: CaptureError) -> None:
        if self._state.is_terminal:
            return
        self._state = transition(self._state, Signal.FAILED)
        self._error = error
        LOGGER.error("Capture failed: %s", error)
        self._events.emit(CaptureEvent.ERROR, error)
        self._settle(self._start_future, error)
        self._settle(self._stop_future, error)
        self._terminate()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _terminate(self) -> None:
        process = self._process
        if process is None or process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            return
        if self._kill_handle is None:
            loop = asyncio.get_running_loop()
            self._kill_handle = loop.call_later(self._settings.stop_grace_period, self._kill)

    def _kill(self) -> None:
        self._kill_handle = None
        process = self._process
        if process is None or process.returncode is not None:
            return
        LOGGER.warning(
            "Capture process pid=%s ignored terminate for %.1fs; killing",
            process.pid,
            self._settings.stop_grace_period,
        )
        try:
            process.kill()
        except ProcessLookupError:
            pass

    def _cancel_timers(self) -> None:
        for handle in (self._kill_handle, self._start_timeout_handle):
            if handle is not None:
                handle.cancel()
        self._kill_handle = None
        self._start_timeout_handle = None

    @staticmethod
    def _settle(
        future: Optional["asyncio.Future[None]"],
        error: Optional[BaseException] = None,
    ) -> None:
        if future is None or future.done():
            return
        if error is None:
            future.set_result(None)
        else:
            future.set_exception(error)


__all__ = ["AudioTapCapture"]

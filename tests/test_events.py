from __future__ import annotations

import logging

import pytest

from tapstream.core.capture.events import CaptureEvent, EventEmitter


def test_emit_dispatches_in_subscription_order() -> None:
    emitter = EventEmitter()
    calls: list[tuple[str, bytes]] = []

    emitter.on("data", lambda chunk: calls.append(("first", chunk)))
    emitter.on(CaptureEvent.DATA, lambda chunk: calls.append(("second", chunk)))

    assert emitter.emit("data", b"x") == 2
    assert calls == [("first", b"x"), ("second", b"x")]


def test_off_and_listener_count() -> None:
    emitter = EventEmitter()
    listener = emitter.on("start", lambda: None)

    assert emitter.listener_count("start") == 1
    emitter.off("start", listener)
    emitter.off("start", listener)
    assert emitter.listener_count("start") == 0


def test_once_fires_a_single_time() -> None:
    emitter = EventEmitter()
    calls: list[int] = []
    emitter.once("stop", lambda: calls.append(1))

    emitter.emit("stop")
    emitter.emit("stop")

    assert calls == [1]
    assert emitter.listener_count("stop") == 0


def test_unknown_channel_is_rejected() -> None:
    emitter = EventEmitter()

    with pytest.raises(ValueError):
        emitter.on("audio", lambda: None)


def test_failing_listener_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    emitter = EventEmitter()
    received: list[str] = []

    def broken(_record: str) -> None:
        raise RuntimeError("boom")

    emitter.on("log", broken)
    emitter.on("log", received.append)

    with caplog.at_level(logging.ERROR):
        emitter.emit("log", "line")

    assert received == ["line"]
    assert "Listener for 'log' event raised" in caplog.text


def test_remove_all_listeners() -> None:
    emitter = EventEmitter()
    emitter.on("data", lambda chunk: None)
    emitter.on("error", lambda error: None)

    emitter.remove_all_listeners("data")
    assert emitter.listener_count("data") == 0
    assert emitter.listener_count("error") == 1

    emitter.remove_all_listeners()
    assert emitter.listener_count("error") == 0

from __future__ import annotations

import logging
import time

import pytest

from fota.app.fan_out import LineFanOut, LineSink
from fota.app.line_framer import LineFramer


def test_saturated_sink_drops_each_new_line_and_warns(caplog) -> None:
    fan_out = LineFanOut()
    small = fan_out.subscribe("writer", 2)
    roomy = fan_out.subscribe("processor", 100)

    with caplog.at_level(logging.WARNING, logger="fota.app.fan_out"):
        dropped = [fan_out.publish(f"line-{n}") for n in range(5)]

    assert dropped == [[], [], ["writer"], ["writer"], ["writer"]]
    assert small.dropped == 3
    assert roomy.dropped == 0
    assert roomy.qsize() == 5
    assert [small.get(0), small.get(0), small.get(0)] == ["line-0", "line-1", None]
    warnings = [r for r in caplog.records if "Queue full (writer)" in r.getMessage()]
    assert len(warnings) == 3


def test_offer_never_blocks_the_producer() -> None:
    fan_out = LineFanOut()
    fan_out.subscribe("writer", 1)
    framer = LineFramer(fan_out, clock=lambda: "2024-05-01T10:11:12.1234567")
    start = time.monotonic()
    framer.feed(b"".join(f"l{n}\n".encode() for n in range(500)))
    assert time.monotonic() - start < 2.0
    assert fan_out.sink("writer").dropped == 499


def test_subscribe_unsubscribe_and_drain() -> None:
    fan_out = LineFanOut()
    sink = fan_out.subscribe("rollout", 10)
    with pytest.raises(ValueError):
        fan_out.subscribe("rollout", 10)
    fan_out.publish("a")
    fan_out.publish("b")
    assert sink.drain() == 2
    assert sink.get(timeout=0.01) is None
    fan_out.unsubscribe("rollout")
    fan_out.publish("c")
    assert sink.qsize() == 0
    assert fan_out.sink("rollout") is None


def test_sink_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        LineSink("bad", 0)

"""Tests for the pyserial transport using an in-memory port."""

from __future__ import annotations

import threading
import time

import pytest

serial = pytest.importorskip("serial")

from fota.adapters.serial_port import SerialPortTransport
from fota.domain.ports import TransportError


class _FakeSerial:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.is_open = True
        self.buffer = bytearray()
        self.written = []
        self.lock = threading.Lock()

    @property
    def in_waiting(self) -> int:
        with self.lock:
            return len(self.buffer)

    def read(self, size: int) -> bytes:
        with self.lock:
            chunk = bytes(self.buffer[:size])
            del self.buffer[:size]
            return chunk

    def write(self, payload: bytes) -> int:
        self.written.append(payload)
        return len(payload)

    def close(self) -> None:
        self.is_open = False

    def inject(self, data: bytes) -> None:
        with self.lock:
            self.buffer.extend(data)


def _factory(store):
    def make(**kwargs):
        port = _FakeSerial(**kwargs)
        store.append(port)
        return port

    return make


def test_open_uses_8n1_without_flow_control() -> None:
    ports = []
    transport = SerialPortTransport("COM21", 115200, serial_factory=_factory(ports))
    transport.open()
    kwargs = ports[0].kwargs
    assert kwargs["port"] == "COM21" and kwargs["baudrate"] == 115200
    assert kwargs["bytesize"] == serial.EIGHTBITS
    assert kwargs["parity"] == serial.PARITY_NONE
    assert kwargs["stopbits"] == serial.STOPBITS_ONE
    assert kwargs["timeout"] == 0
    assert not (kwargs["xonxoff"] or kwargs["rtscts"] or kwargs["dsrdtr"])
    assert transport.is_open
    transport.close()
    assert not transport.is_open


def test_open_failure_is_transport_error() -> None:
    def boom(**kwargs):
        raise serial.SerialException("could not open port COM99")

    transport = SerialPortTransport("COM99", serial_factory=boom)
    with pytest.raises(TransportError) as excinfo:
        transport.open()
    assert "COM99" in str(excinfo.value)
    assert not transport.is_open
    with pytest.raises(TransportError):
        transport.write_line("AT")
    with pytest.raises(TransportError):
        transport.set_listener(lambda chunk: None)


def test_write_line_appends_crlf() -> None:
    ports = []
    transport = SerialPortTransport("COM21", serial_factory=_factory(ports))
    transport.open()
    transport.write_line("AT+VER?")
    assert ports[0].written == [b"AT+VER?\r\n"]
    transport.close()


def test_reader_delivers_chunks_and_survives_listener_errors() -> None:
    ports = []
    transport = SerialPortTransport("COM21", poll_interval_s=0.001, serial_factory=_factory(ports))
    transport.open()
    received = []
    calls = []

    def listener(chunk: bytes) -> None:
        calls.append(chunk)
        if len(calls) == 1:
            raise RuntimeError("listener bug")
        received.append(chunk)

    transport.set_listener(listener)
    ports[0].inject(b"first")
    deadline = time.monotonic() + 2.0
    while not calls and time.monotonic() < deadline:
        time.sleep(0.005)
    ports[0].inject(b"second\r\n")
    while not received and time.monotonic() < deadline:
        time.sleep(0.005)
    transport.close()

    assert calls[0] == b"first"
    assert b"".join(received) == b"second\r\n"
    assert not any(t.name == "serial-reader" and t.is_alive() for t in threading.enumerate())

"""pyserial transport implementing ``TransportPort``.

pyserial has no data-available event, so a daemon reader thread polls
``in_waiting`` and hands each chunk to the registered listener. Line settings
are fixed at 8N1 without flow control; reads are non-blocking (``timeout=0``).

Call context:
    - Owned by ``fota/app/serial_monitor.py``; the listener is the line
      framer's ``feed``.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

import serial

from fota.domain.ports import ChunkCallback, TransportError

log = logging.getLogger(__name__)

SerialFactory = Callable[..., Any]


class SerialPortTransport:
    """Serial line to the device with a polling reader thread."""

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        *,
        poll_interval_s: float = 0.01,
        serial_factory: Optional[SerialFactory] = None,
    ) -> None:
        self.port = port
        self.baudrate = int(baudrate)
        self.poll_interval_s = poll_interval_s
        self._factory = serial_factory or serial.Serial
        self._ser: Any = None
        self._listener: Optional[ChunkCallback] = None
        self._reader: Optional[threading.Thread] = None
        self._running = threading.Event()
        self._write_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._ser is not None and bool(getattr(self._ser, "is_open", False))

    def open(self) -> None:
        """Open the port.

        Raises:
            TransportError: If the port cannot be opened.
        """
        try:
            self._ser = self._factory(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=0,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            self._ser = None
            raise TransportError(f"Failed to open port: {self.port} ({exc})") from exc
        log.info("Opened %s @ %d baud", self.port, self.baudrate)

    def close(self) -> None:
        self.set_listener(None)
        ser, self._ser = self._ser, None
        if ser is not None and getattr(ser, "is_open", False):
            ser.close()
            log.info("Closed %s", self.port)

    def set_listener(self, callback: Optional[ChunkCallback]) -> None:
        """Attach (or, with ``None``, detach) the chunk listener."""
        if callback is None:
            self._running.clear()
            reader, self._reader = self._reader, None
            if reader is not None and reader is not threading.current_thread():
                reader.join(timeout=1.0)
            self._listener = None
            return
        if not self.is_open:
            raise TransportError(f"Port {self.port} is not open")
        self._listener = callback
        if self._reader is None:
            self._running.set()
            self._reader = threading.Thread(target=self._read_loop, name="serial-reader", daemon=True)
            self._reader.start()

    def write_line(self, text: str) -> None:
        if not self.is_open:
            raise TransportError(f"Port {self.port} is not open")
        payload = (text + "\r\n").encode("utf-8")
        try:
            with self._write_lock:
                self._ser.write(payload)
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Failed to write to serial port: {exc}") from exc

    def _read_loop(self) -> None:
        while self._running.is_set():
            ser = self._ser
            if ser is None:
                break
            try:
                waiting = ser.in_waiting
                chunk = ser.read(waiting) if waiting > 0 else b""
            except (serial.SerialException, OSError):
                log.exception("Serial read failed on %s; reader stopping", self.port)
                break
            if not chunk:
                time.sleep(self.poll_interval_s)
                continue
            listener = self._listener
            if listener is None:
                continue
            try:
                listener(chunk)
            except Exception:
                log.exception("Chunk listener raised; continuing to read")


__all__ = ["SerialPortTransport"]

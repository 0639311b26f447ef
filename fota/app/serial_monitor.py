"""Composition of the serial pipeline.

transport -> LineFramer -> LineFanOut -> {LogWriter, StateTracker, extra
subscribers}. ``start`` opens the transport before spawning any worker, so an
open failure leaves no threads behind. ``stop`` detaches the listener,
closes the port, then gives the workers a bounded grace period.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from ..domain.ports import TransportPort
from ..domain.state_map import StateMap
from .fan_out import DEFAULT_CAPACITY, PROCESSOR_SINK, WRITER_SINK, LineFanOut, LineSink
from .line_framer import LineFramer
from .log_writer import LogWriter
from .message_processor import StateTracker

log = logging.getLogger(__name__)


class SerialMonitor:
    """Owns the framer, the sinks, the version map and the worker threads."""

    def __init__(
        self,
        transport: TransportPort,
        *,
        log_path: str | Path = "serial-stream.log",
        queue_capacity: int = DEFAULT_CAPACITY,
        state_map: Optional[StateMap] = None,
    ) -> None:
        self.transport = transport
        self.state_map = state_map or StateMap()
        self.fan_out = LineFanOut()
        self.queue_capacity = queue_capacity
        self.writer_sink = self.fan_out.subscribe(WRITER_SINK, queue_capacity)
        self.processor_sink = self.fan_out.subscribe(PROCESSOR_SINK, queue_capacity)
        self.framer = LineFramer(self.fan_out)
        self._stop = threading.Event()
        self.writer = LogWriter(self.writer_sink, log_path, stop_event=self._stop)
        self.tracker = StateTracker(self.processor_sink, self.state_map, stop_event=self._stop)
        self._threads: Dict[str, threading.Thread] = {}
        self._started = False

    @property
    def running(self) -> bool:
        return self._started and not self._stop.is_set()

    def subscribe(self, name: str, capacity: Optional[int] = None) -> LineSink:
        """Open an extra live subscription fed by the same framer."""
        return self.fan_out.subscribe(name, capacity or self.queue_capacity)

    def unsubscribe(self, name: str) -> None:
        self.fan_out.unsubscribe(name)

    def send_line(self, text: str) -> None:
        self.transport.write_line(text)

    def start(self) -> None:
        """Open the transport and start workers.

        Raises:
            TransportError: If the port cannot be opened; no worker is spawned.
        """
        if self._started:
            return
        self.transport.open()
        self._stop.clear()
        self._spawn("log-writer", self.writer.run)
        self._spawn("message-processor", self.tracker.run)
        self.transport.set_listener(self.framer.feed)
        self._started = True

    def stop(self, grace_s: float = 3.0) -> List[str]:
        """Stop the pipeline; return names of workers that outlived the grace period."""
        try:
            self.transport.set_listener(None)
            if self.transport.is_open:
                self.transport.close()
        finally:
            for line in self.framer.flush():
                log.debug("Flushed partial line at shutdown: %s", line)
            self._stop.set()
            stragglers = self._join_workers(grace_s)
            self._started = False
        return stragglers

    def _spawn(self, name: str, target) -> None:
        thread = threading.Thread(target=target, name=name, daemon=True)
        self._threads[name] = thread
        thread.start()

    def _join_workers(self, grace_s: float) -> List[str]:
        stragglers: List[str] = []
        for name, thread in list(self._threads.items()):
            thread.join(timeout=grace_s)
            if thread.is_alive():
                # Daemon threads are abandoned and die with the process.
                log.warning("Worker %s did not stop within %.1fs", name, grace_s)
                stragglers.append(name)
            self._threads.pop(name, None)
        return stragglers


__all__ = ["SerialMonitor"]

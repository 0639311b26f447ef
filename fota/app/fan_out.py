"""Bounded fan-out of framed lines to independent consumers.

Every sink owns its own ``queue.Queue``. Publishing never blocks: a full sink
drops that one line and logs a warning, other sinks still receive it. The
rollout controller subscribes its own sink so it never competes with the
state tracker for items.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Dict, List, Optional

DEFAULT_CAPACITY = 20000
WRITER_SINK = "writer"
PROCESSOR_SINK = "processor"

log = logging.getLogger(__name__)


class LineSink:
    """Single-consumer bounded queue of framed lines."""

    def __init__(self, name: str, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("Sink capacity must be positive")
        self.name = name
        self.capacity = int(capacity)
        self.dropped = 0
        self._queue: "queue.Queue[str]" = queue.Queue(maxsize=self.capacity)

    def offer(self, line: str) -> bool:
        """Enqueue without blocking; return ``False`` when the line was dropped."""
        try:
            self._queue.put_nowait(line)
        except queue.Full:
            self.dropped += 1
            return False
        return True

    def get(self, timeout: Optional[float] = None) -> Optional[str]:
        """Wait up to ``timeout`` seconds for the next line; ``None`` if none arrived."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> int:
        """Discard queued lines and return how many were removed."""
        removed = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return removed
            removed += 1

    def qsize(self) -> int:
        return self._queue.qsize()


class LineFanOut:
    """Registry of named sinks fed by one producer (the line framer)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sinks: Dict[str, LineSink] = {}

    def subscribe(self, name: str, capacity: int = DEFAULT_CAPACITY) -> LineSink:
        sink = LineSink(name, capacity)
        with self._lock:
            if name in self._sinks:
                raise ValueError(f"Sink '{name}' is already subscribed")
            self._sinks[name] = sink
        return sink

    def unsubscribe(self, name: str) -> None:
        with self._lock:
            self._sinks.pop(name, None)

    def sink(self, name: str) -> Optional[LineSink]:
        with self._lock:
            return self._sinks.get(name)

    def publish(self, line: str) -> List[str]:
        """Offer ``line`` to every sink; return names of sinks that dropped it."""
        with self._lock:
            sinks = list(self._sinks.values())
        dropped: List[str] = []
        for sink in sinks:
            if not sink.offer(line):
                dropped.append(sink.name)
                log.warning("Queue full (%s): dropping line -> %s", sink.name, line)
        return dropped


__all__ = ["DEFAULT_CAPACITY", "LineFanOut", "LineSink", "PROCESSOR_SINK", "WRITER_SINK"]

"""Console + append-only file writer for the device stream."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import Optional, TextIO

from ..domain.log_format import format_log_line
from .fan_out import LineSink

log = logging.getLogger(__name__)


class LogWriter:
    """Drains the writer sink and mirrors each formatted line to stdout and a file.

    A file error ends this loop only; the framer keeps feeding the other sinks
    and the writer sink simply fills up and starts dropping.
    """

    def __init__(
        self,
        sink: LineSink,
        log_path: str | Path,
        *,
        stop_event: Optional[threading.Event] = None,
        out: Optional[TextIO] = None,
        poll_s: float = 0.5,
    ) -> None:
        self.sink = sink
        self.log_path = Path(log_path)
        self.stop_event = stop_event or threading.Event()
        self._out = out
        self.poll_s = poll_s
        self.lines_written = 0
        self.failed = False

    def run(self) -> None:
        try:
            with self.log_path.open("a", encoding="utf-8") as handle:
                while not self.stop_event.is_set():
                    raw = self.sink.get(timeout=self.poll_s)
                    if raw is None:
                        continue
                    self.write_one(raw, handle)
                # Lines accepted before shutdown still reach the file.
                while True:
                    raw = self.sink.get(timeout=0)
                    if raw is None:
                        break
                    self.write_one(raw, handle)
        except OSError:
            self.failed = True
            log.exception("Log writer stopped: cannot write %s", self.log_path)

    def write_one(self, raw: str, handle: TextIO) -> str:
        formatted = format_log_line(raw)
        self._echo(formatted)
        handle.write(formatted + "\n")
        handle.flush()
        self.lines_written += 1
        return formatted

    def _echo(self, formatted: str) -> None:
        out = self._out or sys.stdout
        try:
            out.write(formatted + "\n")
        except UnicodeEncodeError:
            encoding = getattr(out, "encoding", None) or "ascii"
            out.write(formatted.encode(encoding, "replace").decode(encoding) + "\n")


__all__ = ["LogWriter"]

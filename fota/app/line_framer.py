"""Chunk-to-line framing for the serial stream.

Raw chunks may split lines, escape sequences or UTF-8 characters anywhere.
The framer decodes incrementally, normalizes CRLF/CR to ``\\n``, and only
cleans a line once its terminator has arrived, so the emitted lines do not
depend on chunk boundaries. A CRLF split across two chunks yields an extra
empty line, which is discarded like any other empty line.
"""

from __future__ import annotations

import codecs
import logging
import re
import threading
from typing import Callable, List, Optional, Union

from ..domain.time_utils import timestamp_with_7
from .fan_out import LineFanOut

log = logging.getLogger(__name__)

# CSI sequences (ESC [ params intermediates final) and two-byte ESC sequences.
ANSI_ESCAPE = re.compile(r"\x1B(?:\[[0-?]*[ -/]*[@-~]|[@-Z\\-_])")
_LINE_BREAK = re.compile(r"\r\n?")

Chunk = Union[bytes, bytearray, str]


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text or "")


class LineFramer:
    """Turns arbitrary chunks into timestamped, cleaned lines.

    ``feed`` may be called from the transport's reader thread; all buffer
    mutation happens under one lock and publishing never blocks.
    """

    def __init__(
        self,
        fan_out: Optional[LineFanOut] = None,
        *,
        clock: Callable[[], str] = timestamp_with_7,
        encoding: str = "utf-8",
    ) -> None:
        self.fan_out = fan_out
        self._clock = clock
        self._lock = threading.Lock()
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder(encoding)("replace")

    def feed(self, chunk: Chunk) -> List[str]:
        """Append a chunk and publish every completed line.

        Returns:
            The framed lines emitted by this call, in order.
        """
        if not chunk:
            return []
        with self._lock:
            text = chunk if isinstance(chunk, str) else self._decoder.decode(bytes(chunk), False)
            self._buffer += _LINE_BREAK.sub("\n", text)
            emitted: List[str] = []
            while True:
                idx = self._buffer.find("\n")
                if idx == -1:
                    break
                raw_line = self._buffer[:idx]
                self._buffer = self._buffer[idx + 1 :]
                framed = self._frame(raw_line)
                if framed is not None:
                    emitted.append(framed)
            return emitted

    def flush(self) -> List[str]:
        """Frame whatever partial text is buffered (used at shutdown)."""
        with self._lock:
            tail = self._buffer + self._decoder.decode(b"", True)
            self._buffer = ""
            framed = self._frame(_LINE_BREAK.sub("\n", tail).replace("\n", " "))
            return [framed] if framed is not None else []

    @property
    def pending(self) -> str:
        with self._lock:
            return self._buffer

    def _frame(self, raw_line: str) -> Optional[str]:
        cleaned = strip_ansi(raw_line).strip()
        if not cleaned:
            return None
        framed = f"{self._clock()} {cleaned}"
        if self.fan_out is not None:
            self.fan_out.publish(framed)
        return framed


__all__ = ["ANSI_ESCAPE", "LineFramer", "strip_ansi"]

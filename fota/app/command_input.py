"""Operator console: forwards typed lines to the device."""

from __future__ import annotations

import logging
import sys
import threading
from typing import Callable, Optional, TextIO

from ..domain.ports import TransportError

log = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit"}


class CommandInput:
    """Blocking ``readline`` loop; ``exit``/``quit`` requests shutdown."""

    def __init__(
        self,
        send_line: Callable[[str], None],
        on_exit: Callable[[], None],
        *,
        stream: Optional[TextIO] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.send_line = send_line
        self.on_exit = on_exit
        self.stream = stream
        self.stop_event = stop_event or threading.Event()

    def run(self) -> None:
        stream = self.stream or sys.stdin
        log.info("[INPUT] Type commands to send to device. Type 'exit' or 'quit' to stop.")
        while not self.stop_event.is_set():
            raw = stream.readline()
            if raw == "":
                # EOF: nothing more will ever arrive on this stream.
                return
            if self.handle(raw.rstrip("\r\n")):
                return

    def handle(self, command: str) -> bool:
        """Process one operator line; return ``True`` when shutdown was requested."""
        if command.strip().lower() in EXIT_COMMANDS:
            log.info("Exiting...")
            self.stop_event.set()
            self.on_exit()
            return True
        log.info("[SEND] %s", command)
        try:
            self.send_line(command)
        except TransportError as exc:
            log.error("Failed to write to serial port: %s", exc)
        return False


__all__ = ["CommandInput", "EXIT_COMMANDS"]

"""State tracker loop: parse processor-sink lines into the version map."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Sequence

from ..domain.message_rules import DEFAULT_RULES, StateCommit, detect_action, parse_message
from ..domain.state_map import StateMap
from .fan_out import LineSink

log = logging.getLogger(__name__)

ActionCallback = Callable[[str, str], None]


class StateTracker:
    """Single consumer of the processor sink that owns writes to ``StateMap``."""

    def __init__(
        self,
        sink: LineSink,
        state_map: StateMap,
        *,
        rules: Sequence = DEFAULT_RULES,
        stop_event: Optional[threading.Event] = None,
        on_action: Optional[ActionCallback] = None,
        poll_s: float = 0.5,
    ) -> None:
        self.sink = sink
        self.state_map = state_map
        self.rules = tuple(rules)
        self.stop_event = stop_event or threading.Event()
        self.on_action = on_action
        self.poll_s = poll_s

    def run(self) -> None:
        while not self.stop_event.is_set():
            self._process(self.sink.get(timeout=self.poll_s))
        # Apply the backlog so the final map reflects every accepted line.
        while True:
            line = self.sink.get(timeout=0)
            if line is None:
                break
            self._process(line)

    def _process(self, line: Optional[str]) -> None:
        if line is None:
            return
        try:
            self.handle_line(line)
        except Exception:
            log.exception("State tracker failed on line: %s", line)

    def handle_line(self, line: str) -> Optional[StateCommit]:
        commit = parse_message(line, self.rules)
        if commit is not None:
            self.state_map.put(commit.state, commit.key, commit.version)
            log.info(
                "[MAP-UPDATE] state=%s software=%s version=%s",
                commit.state,
                commit.key,
                commit.version,
            )
        # Action triggers only fire for lines the structured rules did not claim.
        if commit is None or commit.rule == "bare_version":
            action = detect_action(line)
            if action is not None:
                log.info("[ACTION] %s detected -> %s", action, line)
                if self.on_action is not None:
                    self.on_action(action, line)
        return commit


__all__ = ["StateTracker"]

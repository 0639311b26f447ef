"""Use case for waiting on a version acknowledgment from the live stream."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fota.domain.ports import LineSource
from fota.domain.time_utils import strip_leading_timestamp
from fota.domain.versions import find_version

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 120.0
DEFAULT_POLL_INTERVAL_S = 2.0


@dataclass
class WaitForVersion:
    """Use-case callable that polls a line subscription for a version token.

    Attributes:
        source: Live line subscription (never the state tracker's sink).
        timeout_s: Overall deadline for one wait.
        poll_interval_s: Upper bound for each blocking ``get``.
        clock: Monotonic clock; injectable for deterministic tests.
        extractor: Maps a timestamp-free line to a version string or ``None``.
        cancel_event: Optional flag that ends the wait early with ``None``.
    """

    source: LineSource
    timeout_s: float = DEFAULT_TIMEOUT_S
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    clock: Callable[[], float] = time.monotonic
    extractor: Callable[[str], Optional[str]] = find_version
    cancel_event: Optional[threading.Event] = None

    def __call__(self) -> Optional[str]:
        """Return the first version observed before the deadline.

        Returns:
            Optional[str]: Version token from the first matching line, or
            ``None`` when the deadline passes (or cancellation is requested)
            without a match.

        Side Effects:
            Consumes lines from ``source``; non-matching lines are discarded
            after a debug log.

        Call Chain:
            ``RunRollout`` step -> ``WaitForVersion.__call__`` ->
            ``LineSource.get``.
        """
        deadline = self.clock() + self.timeout_s
        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                return None
            remaining = deadline - self.clock()
            if remaining <= 0:
                return None
            line = self.source.get(timeout=min(self.poll_interval_s, remaining))
            if line is None:
                continue
            text = strip_leading_timestamp(line)
            version = self.extractor(text)
            if version:
                log.info("[ORC] Found version on serial: %s (line=%s)", version, text)
                return version
            log.debug("[ORC] Serial line: %s", text)


__all__ = ["DEFAULT_POLL_INTERVAL_S", "DEFAULT_TIMEOUT_S", "WaitForVersion"]

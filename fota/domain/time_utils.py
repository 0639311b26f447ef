"""Timestamp helpers for framed serial lines and audit records."""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Optional

# yyyy-MM-ddTHH:mm:ss.fffffff followed by the separating whitespace.
LEADING_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{7}\s+")


def timestamp_with_7(now_ns: Optional[int] = None) -> str:
    """Return local time as ``YYYY-MM-DDTHH:MM:SS.fffffff``.

    The fractional part is the sub-second remainder in 100 ns units, taken
    from ``time.time_ns()`` so the seventh digit reflects the clock rather
    than a padded zero where the platform clock is fine-grained enough.
    """
    ns = time.time_ns() if now_ns is None else int(now_ns)
    seconds, remainder = divmod(ns, 1_000_000_000)
    base = datetime.fromtimestamp(seconds).strftime("%Y-%m-%dT%H:%M:%S")
    return f"{base}.{remainder // 100:07d}"


def strip_leading_timestamp(line: str) -> str:
    """Remove the framer's timestamp prefix if present."""
    return LEADING_TIMESTAMP.sub("", line or "", count=1)


def utc_now_iso() -> str:
    """Return timezone-aware UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


__all__ = ["LEADING_TIMESTAMP", "strip_leading_timestamp", "timestamp_with_7", "utc_now_iso"]

"""Fixed-width rendering of framed device lines for console and log file."""

from __future__ import annotations

import re

TIMESTAMP_WIDTH = 27
LEVEL_WIDTH = 6
TAG_WIDTH = 12

# <leading token> [LEVEL:] [[tag]] <message>
_LOG_PARSE = re.compile(r"^(\S+)\s*(?:([A-Z]+):\s*)?(?:\s*\[([^\]]+)\]\s*)?(.*)$", re.DOTALL)


def fit(value: str, width: int) -> str:
    """Left-justify ``value`` in ``width`` columns, truncating overflow."""
    text = value or ""
    if len(text) >= width:
        return text[:width]
    return text.ljust(width)


def format_log_line(raw: str) -> str:
    if not raw:
        return ""
    match = _LOG_PARSE.match(raw)
    if not match:
        return raw
    ts, level, tag, message = (group or "" for group in match.groups())
    tag_out = f"[{tag}]" if tag else ""
    return " ".join(
        (
            fit(ts, TIMESTAMP_WIDTH),
            fit(level, LEVEL_WIDTH),
            fit(tag_out, TAG_WIDTH),
            message,
        )
    )


__all__ = ["LEVEL_WIDTH", "TAG_WIDTH", "TIMESTAMP_WIDTH", "fit", "format_log_line"]

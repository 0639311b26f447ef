"""Dotted numeric version helpers shared by the parser and the rollout loop.

Versions are compared component-wise over integer segments; the shorter
sequence is padded with zeros on the right, so ``1.2`` equals ``1.2.0``.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

VersionKey = Tuple[int, ...]

# A version needs at least two numeric components; bare integers are data.
VERSION_SHAPE = re.compile(r"\d+(?:\.\d+)+")
STANDALONE_VERSION = re.compile(r"(?<!\d)\d+(?:\.\d+)+(?!\d)")


class VersionFormatError(ValueError):
    """Raised when a version string has an empty or non-numeric segment."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Malformed version: {value!r}")
        self.value = value


def parse_version(value: str) -> VersionKey:
    """Parse ``"1.2.3"`` into ``(1, 2, 3)``.

    Raises:
        VersionFormatError: If any segment is empty or not a decimal integer.
    """
    text = str(value or "").strip()
    if not text:
        raise VersionFormatError(text)
    parts = text.split(".")
    if not all(part.isdigit() for part in parts):
        raise VersionFormatError(text)
    return tuple(int(part) for part in parts)


def _pad(a: VersionKey, b: VersionKey) -> Tuple[VersionKey, VersionKey]:
    width = max(len(a), len(b))
    return a + (0,) * (width - len(a)), b + (0,) * (width - len(b))


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is lower, equal or higher than ``b``."""
    left, right = _pad(parse_version(a), parse_version(b))
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def is_less_or_equal(a: str, b: str) -> bool:
    return compare_versions(a, b) <= 0


def is_less(a: str, b: str) -> bool:
    return compare_versions(a, b) < 0


def is_version_shaped(value: str) -> bool:
    """True when the whole (trimmed) value is a dotted numeric version."""
    return VERSION_SHAPE.fullmatch(str(value or "").strip()) is not None


def contains_version(value: str) -> bool:
    return VERSION_SHAPE.search(str(value or "")) is not None


def find_version(text: str) -> Optional[str]:
    """Return the first standalone version token in ``text``, if any."""
    match = STANDALONE_VERSION.search(text or "")
    return match.group() if match else None


__all__ = [
    "STANDALONE_VERSION",
    "VERSION_SHAPE",
    "VersionFormatError",
    "VersionKey",
    "compare_versions",
    "contains_version",
    "find_version",
    "is_less",
    "is_less_or_equal",
    "is_version_shaped",
    "parse_version",
]

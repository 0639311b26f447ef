"""Ordered parse rules that turn device lines into version-map commits.

Each rule is a small object with ``name`` and ``match(text)``. The parser
walks ``DEFAULT_RULES`` in order and commits the first non-``None`` result,
so rule priority is the list order:

1. labeled ``SOFTWARE``/``VERSION``/``STATE`` triple
2. labeled ``SOFTWARE`` whose value is itself a version
3. ``55AA`` login/handshake CSV packet
4. first bare version token anywhere in the line
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from .time_utils import strip_leading_timestamp
from .versions import contains_version, find_version, is_version_shaped

STATE_LOGIN = "LOGIN"
STATE_UNKNOWN = "UNKNOWN"
KEY_SOFTWARE = "SOFTWARE"
KEY_LOGIN_FALLBACK = "LOGIN_SOFTWARE"
LOGIN_SENTINEL = "55AA"
LOGIN_DEVICE_FIELD = 6

_SOFTWARE = re.compile(r"SOFTWARE[:=\s]+([^\s,;:]+)", re.IGNORECASE)
_VERSION = re.compile(r"VERSION[:=\s]+([^\s,;:]+)", re.IGNORECASE)
_STATE = re.compile(r"STATE[:=\s]+([^\s,;:]+)", re.IGNORECASE)
_VEHICLE = re.compile(r".*VEHICLE\s+.*:.*")


@dataclass(frozen=True)
class StateCommit:
    """One upsert into the state map and the rule that produced it."""

    state: str
    key: str
    version: str
    rule: str


def _token(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


@dataclass(frozen=True)
class _Labels:
    software: Optional[str]
    version: Optional[str]
    state: Optional[str]

    @classmethod
    def scan(cls, text: str) -> "_Labels":
        return cls(_token(_SOFTWARE, text), _token(_VERSION, text), _token(_STATE, text))


class LabeledTripleRule:
    name = "labeled_triple"

    def match(self, text: str) -> Optional[StateCommit]:
        labels = _Labels.scan(text)
        if labels.software and labels.version and labels.state:
            return StateCommit(labels.state, labels.software, labels.version, self.name)
        return None


class SoftwareOnlyRule:
    name = "software_only"

    def match(self, text: str) -> Optional[StateCommit]:
        labels = _Labels.scan(text)
        if labels.software is None or labels.version is not None:
            return None
        if not contains_version(labels.software):
            return None
        return StateCommit(labels.state or STATE_UNKNOWN, KEY_SOFTWARE, labels.software, self.name)


class LoginPacketRule:
    """``55AA`` handshake packet: CSV payload up to the first ``|``.

    The version is the first field that is entirely version-shaped. Field 7
    (index 6) names the device unless it is empty or looks like a version.
    """

    name = "login_packet"

    def match(self, text: str) -> Optional[StateCommit]:
        if not (text.startswith(LOGIN_SENTINEL) or f"{LOGIN_SENTINEL}," in text):
            return None
        payload = text.split("|", 1)[0]
        fields = [part.strip() for part in payload.split(",")]
        version = next((part for part in fields if is_version_shaped(part)), None)
        if version is None:
            return None
        device_id = None
        if len(fields) > LOGIN_DEVICE_FIELD:
            candidate = fields[LOGIN_DEVICE_FIELD]
            if candidate and not is_version_shaped(candidate):
                device_id = candidate
        return StateCommit(STATE_LOGIN, device_id or KEY_LOGIN_FALLBACK, version, self.name)


class BareVersionRule:
    name = "bare_version"

    def match(self, text: str) -> Optional[StateCommit]:
        version = find_version(text)
        if version is None:
            return None
        return StateCommit(STATE_UNKNOWN, KEY_SOFTWARE, version, self.name)


DEFAULT_RULES: Tuple = (
    LabeledTripleRule(),
    SoftwareOnlyRule(),
    LoginPacketRule(),
    BareVersionRule(),
)


def parse_message(line: str, rules: Sequence = DEFAULT_RULES) -> Optional[StateCommit]:
    """Strip the timestamp prefix and return the first rule commit, if any."""
    text = strip_leading_timestamp(line).strip()
    if not text:
        return None
    for rule in rules:
        commit = rule.match(text)
        if commit is not None:
            return commit
    return None


# ---- Action triggers ----
ActionMatcher = Callable[[str], bool]

ACTION_RULES: Tuple[Tuple[str, ActionMatcher], ...] = (
    ("ignition_on", lambda text: "ignStatus=1" in text),
    ("vehicle_info", lambda text: _VEHICLE.fullmatch(text) is not None),
)


def detect_action(line: str) -> Optional[str]:
    """Return the name of the first action trigger matching ``line``."""
    text = strip_leading_timestamp(line)
    for name, matcher in ACTION_RULES:
        if matcher(text):
            return name
    return None


__all__ = [
    "ACTION_RULES",
    "BareVersionRule",
    "DEFAULT_RULES",
    "KEY_LOGIN_FALLBACK",
    "KEY_SOFTWARE",
    "LOGIN_SENTINEL",
    "LabeledTripleRule",
    "LoginPacketRule",
    "STATE_LOGIN",
    "STATE_UNKNOWN",
    "SoftwareOnlyRule",
    "StateCommit",
    "detect_action",
    "parse_message",
]

"""Rollout state machine values and per-step outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .audit import AuditRecord

STATE_IDLE = "idle"
STATE_RUNNING = "running"
STATE_CONVERGED = "converged"
STATE_EXHAUSTED = "exhausted"
STATE_FAILED = "failed"

RESULT_TIMEOUT = "TIMEOUT"
RESULT_REPORTED = "REPORTED"
RESULT_REPORTED_HIGHER = "REPORTED_HIGHER"
RESULT_INCOMPARABLE = "INCOMPARABLE"
RESULT_CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class StepOutcome:
    """Classification of one firmware step plus the audit row it produced."""

    index: int
    result: str
    observed_version: Optional[str]
    record: AuditRecord


@dataclass
class RolloutReport:
    """Mutable session state; ``state`` ends in one of the terminal states."""

    device_id: str
    state: str = STATE_IDLE
    current_index: int = 0
    steps: List[StepOutcome] = field(default_factory=list)
    reason: str = ""

    @property
    def last_observed_version(self) -> Optional[str]:
        for step in reversed(self.steps):
            if step.observed_version is not None:
                return step.observed_version
        return None


def classify_label(kind: str, version: Optional[str]) -> str:
    """Render ``REPORTED:<v>`` style labels; ``TIMEOUT`` carries no version."""
    if kind == RESULT_TIMEOUT or version is None:
        return RESULT_TIMEOUT
    return f"{kind}:{version}"


__all__ = [
    "RESULT_CANCELLED",
    "RESULT_INCOMPARABLE",
    "RESULT_REPORTED",
    "RESULT_REPORTED_HIGHER",
    "RESULT_TIMEOUT",
    "RolloutReport",
    "STATE_CONVERGED",
    "STATE_EXHAUSTED",
    "STATE_FAILED",
    "STATE_IDLE",
    "STATE_RUNNING",
    "StepOutcome",
    "classify_label",
]

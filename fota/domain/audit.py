"""Audit record DTO written once per rollout step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

AUDIT_HEADER: Tuple[str, ...] = (
    "timestamp",
    "deviceId",
    "firmwareId",
    "firmwareVersion",
    "firmwarePath",
    "beforeVersion",
    "afterVersion",
    "result",
    "jobId",
)


def _cell(value: Optional[str]) -> str:
    # Commas would shift columns for naive CSV readers downstream.
    return "" if value is None else str(value).replace(",", ";")


@dataclass(frozen=True)
class AuditRecord:
    """Typed audit row; ``None`` fields render as empty cells."""

    timestamp: str
    device_id: str
    firmware_id: str
    firmware_version: str
    firmware_path: str
    before_version: Optional[str]
    after_version: Optional[str]
    result: str
    job_id: Optional[str] = None

    def to_row(self) -> List[str]:
        return [
            _cell(self.timestamp),
            _cell(self.device_id),
            _cell(self.firmware_id),
            _cell(self.firmware_version),
            _cell(self.firmware_path),
            _cell(self.before_version),
            _cell(self.after_version),
            _cell(self.result),
            _cell(self.job_id),
        ]

    def to_line(self) -> str:
        return ",".join(self.to_row())


__all__ = ["AUDIT_HEADER", "AuditRecord"]

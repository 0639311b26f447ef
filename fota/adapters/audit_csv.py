from __future__ import annotations
import csv
import threading
from pathlib import Path

from fota.domain.audit import AUDIT_HEADER, AuditRecord
from fota.domain.ports import AuditPort


class AuditCsv(AuditPort):
    """Append-only CSV audit trail; the header is written once per file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def ensure_header(self) -> None:
        with self._lock:
            self._ensure_header_locked()

    def append(self, record: AuditRecord) -> None:
        """Write one row and flush before returning; ``OSError`` propagates."""
        with self._lock:
            self._ensure_header_locked()
            with self.path.open("a", encoding="utf-8", newline="") as f:
                csv.writer(f, lineterminator="\n").writerow(record.to_row())
                f.flush()

    def _ensure_header_locked(self) -> None:
        if self.path.exists() and self.path.stat().st_size > 0:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8", newline="") as f:
            csv.writer(f, lineterminator="\n").writerow(AUDIT_HEADER)

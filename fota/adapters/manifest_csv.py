from __future__ import annotations
import csv
import logging
from pathlib import Path
from typing import List

from fota.domain.firmware import FirmwareDescriptor, FirmwareList
from fota.domain.ports import UseCaseError

log = logging.getLogger(__name__)

MANIFEST_HEADER = ("firmware_id", "firmware_version", "firmware_file_path")


def read_manifest_rows(path: str | Path) -> List[FirmwareDescriptor]:
    """Read ``firmware_id,firmware_version,firmware_file_path`` rows in file order.

    Blank lines, ``#`` comments, the header row, short rows and rows with an
    unparsable version are skipped.
    """
    manifest = Path(path).expanduser()
    if not manifest.is_file():
        raise UseCaseError("MANIFEST_NOT_FOUND", f"Firmware manifest not found: {manifest}")
    descriptors: List[FirmwareDescriptor] = []
    with manifest.open("r", encoding="utf-8", newline="") as f:
        for lineno, row in enumerate(csv.reader(f), start=1):
            if not row or not "".join(row).strip():
                continue
            first = row[0].strip()
            if first.startswith("#") or first == MANIFEST_HEADER[0]:
                continue
            if len(row) < 3:
                log.debug("Manifest line %d skipped: expected 3 fields", lineno)
                continue
            try:
                descriptors.append(FirmwareDescriptor(first, row[1].strip(), row[2].strip()))
            except ValueError:
                log.debug("Manifest line %d skipped: invalid entry %r", lineno, row)
    return descriptors


def load_firmware_list(path: str | Path) -> FirmwareList:
    """Load the manifest and sort it once by numeric version."""
    return FirmwareList(read_manifest_rows(path))


__all__ = ["MANIFEST_HEADER", "load_firmware_list", "read_manifest_rows"]

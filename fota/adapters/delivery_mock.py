from __future__ import annotations
from typing import List, Optional, Tuple
from fota.domain.firmware import FirmwareDescriptor
from fota.domain.ports import DeliveryPort


class DeliveryMock(DeliveryPort):
    """In-memory delivery stub used for dry runs and tests."""

    def __init__(self, prefix: str = "dry-run") -> None:
        self.prefix = prefix
        self.calls: List[Tuple[str, str]] = []

    def submit(self, device_id: str, firmware: FirmwareDescriptor) -> Optional[str]:
        self.calls.append((device_id, firmware.firmware_id))
        return f"{self.prefix}-{len(self.calls)}"

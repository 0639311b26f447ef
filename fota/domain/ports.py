from __future__ import annotations
from typing import TYPE_CHECKING, Callable, Optional, Protocol

if TYPE_CHECKING:
    from .audit import AuditRecord
    from .firmware import FirmwareDescriptor

DeviceId = str
JobId = str
ChunkCallback = Callable[[bytes], None]


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class TransportError(RuntimeError):
    """Serial transport could not be opened or written."""


# ---- Ports (Hexagonal boundaries) ----
class DeliveryPort(Protocol):
    """Starts a firmware push for one device.

    Returns the job identifier reported by the backend, or ``None`` when the
    backend accepted the request without one.
    """

    def submit(self, device_id: DeviceId, firmware: "FirmwareDescriptor") -> Optional[JobId]: ...


class AuditPort(Protocol):
    """Append-only sink for rollout audit records."""

    def append(self, record: "AuditRecord") -> None: ...


class TransportPort(Protocol):
    """Raw byte transport to the device (serial port in production)."""

    def open(self) -> None: ...
    def close(self) -> None: ...
    def set_listener(self, callback: Optional[ChunkCallback]) -> None: ...
    def write_line(self, text: str) -> None: ...
    @property
    def is_open(self) -> bool: ...


class LineSource(Protocol):
    """Live subscription to framed lines."""

    def get(self, timeout: Optional[float] = None) -> Optional[str]: ...
    def drain(self) -> int: ...

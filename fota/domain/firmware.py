"""Firmware descriptors and the ordered rollout list."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Tuple

from .ports import UseCaseError
from .versions import VersionKey, parse_version


@dataclass(frozen=True)
class FirmwareDescriptor:
    """One manifest entry: identifier, target version and delivery locator."""

    firmware_id: str
    version: str
    path: str
    version_key: VersionKey = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not str(self.firmware_id or "").strip():
            raise ValueError("firmware_id must be a non-empty string.")
        object.__setattr__(self, "version_key", parse_version(self.version))


class FirmwareList:
    """Immutable firmware sequence sorted ascending by numeric version.

    Sorting happens once here; later code relies on index order only.
    ``2.9.0 < 2.10.0 < 2.11.0`` (numeric, not lexical). Equal versions keep
    their input order.
    """

    def __init__(self, descriptors: Iterable[FirmwareDescriptor]) -> None:
        ordered = sorted(descriptors, key=lambda fw: fw.version_key)
        if not ordered:
            raise UseCaseError("FIRMWARE_LIST_EMPTY", "Firmware list contains no usable entries.")
        self._items: Tuple[FirmwareDescriptor, ...] = tuple(ordered)

    @property
    def highest(self) -> FirmwareDescriptor:
        return self._items[-1]

    @property
    def versions(self) -> Tuple[str, ...]:
        return tuple(fw.version for fw in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[FirmwareDescriptor]:
        return iter(self._items)

    def __getitem__(self, index: int) -> FirmwareDescriptor:
        return self._items[index]

    def __repr__(self) -> str:
        return f"FirmwareList({list(self.versions)!r})"


__all__ = ["FirmwareDescriptor", "FirmwareList"]

"""Domain package exports for value objects and protocol rules."""

from .audit import AUDIT_HEADER, AuditRecord
from .firmware import FirmwareDescriptor, FirmwareList
from .message_rules import StateCommit, detect_action, parse_message
from .ports import DeliveryPort, TransportError, UseCaseError
from .rollout import RolloutReport, StepOutcome
from .state_map import StateMap
from .versions import (
    VersionFormatError,
    compare_versions,
    find_version,
    is_less_or_equal,
    parse_version,
)

__all__ = [
    "AUDIT_HEADER",
    "AuditRecord",
    "DeliveryPort",
    "FirmwareDescriptor",
    "FirmwareList",
    "RolloutReport",
    "StateCommit",
    "StateMap",
    "StepOutcome",
    "TransportError",
    "UseCaseError",
    "VersionFormatError",
    "compare_versions",
    "detect_action",
    "find_version",
    "is_less_or_equal",
    "parse_version",
]

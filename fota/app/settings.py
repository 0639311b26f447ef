"""Runtime settings for the monitor and rollout.

Resolution order per field: JSON settings file, then ``FOTA_<FIELD>``
environment variables, then explicit overrides (CLI flags).
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

ENV_PREFIX = "FOTA_"
DEFAULT_SETTINGS_FILE = "fota_settings.json"


@dataclass(frozen=True)
class FotaSettings:
    """Typed runtime settings."""

    serial_port: str = "COM21"
    baud: int = 115200
    log_file: str = "serial-stream.log"
    firmware_csv: str = "fota_list.csv"
    audit_csv: str = "fota_audit.csv"
    delivery_url: str = ""
    api_key: str = ""
    device_id: str = "ATCU1234"
    serial_wait_s: float = 120.0
    poll_interval_s: float = 2.0
    request_timeout_s: int = 30
    queue_capacity: int = 20000
    shutdown_grace_s: float = 3.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(name: str, kind: Any, value: Any) -> Any:
    if kind in (int, "int"):
        try:
            return int(str(value).strip())
        except ValueError as exc:
            raise ValueError(f"Setting '{name}' must be an integer, got {value!r}") from exc
    if kind in (float, "float"):
        try:
            return float(str(value).strip())
        except ValueError as exc:
            raise ValueError(f"Setting '{name}' must be a number, got {value!r}") from exc
    return str(value).strip()


def apply_overrides(settings: FotaSettings, values: Mapping[str, Any]) -> FotaSettings:
    """Return a copy with known, non-empty ``values`` applied and coerced."""
    changes: Dict[str, Any] = {}
    for f in fields(FotaSettings):
        if f.name not in values:
            continue
        raw = values[f.name]
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        changes[f.name] = _coerce(f.name, f.type, raw)
    return replace(settings, **changes) if changes else settings


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = os.environ if environ is None else environ
    found: Dict[str, str] = {}
    for f in fields(FotaSettings):
        value = env.get(ENV_PREFIX + f.name.upper())
        if value is not None and value.strip():
            found[f.name] = value
    return found


def load_settings(
    path: Optional[str | Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> FotaSettings:
    """Resolve settings from file, environment and explicit overrides.

    Raises:
        ValueError: If the file is not a JSON object or a numeric field fails
            to parse.
    """
    settings = FotaSettings()
    settings_path = Path(path or DEFAULT_SETTINGS_FILE).expanduser()
    if settings_path.is_file():
        with settings_path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"Settings file {settings_path} must contain a JSON object")
        settings = apply_overrides(settings, payload)
    settings = apply_overrides(settings, env_overrides(environ))
    if overrides:
        settings = apply_overrides(settings, overrides)
    return settings


__all__ = ["DEFAULT_SETTINGS_FILE", "ENV_PREFIX", "FotaSettings", "apply_overrides", "env_overrides", "load_settings"]

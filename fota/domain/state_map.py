"""Two-level version map: state label -> identifier -> version."""

from __future__ import annotations

import json
import threading
from typing import Dict, Optional


class StateMap:
    """Thread-safe upsert store shared by the parser loop and the rollout.

    Keys are exact, case-sensitive strings. The lock only guards dictionary
    operations, so readers never wait behind parsing work.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: Dict[str, Dict[str, str]] = {}

    def put(self, state: str, key: str, version: str) -> None:
        with self._lock:
            self._states.setdefault(state, {})[key] = version

    def get(self, state: str, key: str) -> Optional[str]:
        with self._lock:
            inner = self._states.get(state)
            return None if inner is None else inner.get(key)

    def snapshot(self) -> Dict[str, Dict[str, str]]:
        """Return a copy detached from later writes."""
        with self._lock:
            return {state: dict(inner) for state, inner in self._states.items()}

    def to_json(self) -> str:
        return json.dumps(self.snapshot(), ensure_ascii=False, sort_keys=True)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(inner) for inner in self._states.values())


__all__ = ["StateMap"]

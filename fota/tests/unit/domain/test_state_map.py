from __future__ import annotations

import json
import threading

from fota.domain.message_rules import parse_message
from fota.domain.state_map import StateMap


def _apply(state_map: StateMap, line: str) -> None:
    commit = parse_message(line)
    assert commit is not None
    state_map.put(commit.state, commit.key, commit.version)


def test_same_labeled_line_twice_is_idempotent() -> None:
    state_map = StateMap()
    line = "SOFTWARE: agentX VERSION: 3.4.0 STATE: IDLE"
    _apply(state_map, line)
    first = state_map.snapshot()
    _apply(state_map, line)
    assert state_map.snapshot() == first == {"IDLE": {"agentX": "3.4.0"}}


def test_last_write_wins_and_keys_are_case_sensitive() -> None:
    state_map = StateMap()
    state_map.put("IDLE", "agent", "1.0")
    state_map.put("IDLE", "agent", "1.1")
    state_map.put("idle", "agent", "9.9")
    assert state_map.get("IDLE", "agent") == "1.1"
    assert state_map.get("idle", "agent") == "9.9"
    assert state_map.get("IDLE", "AGENT") is None
    assert state_map.get("MISSING", "agent") is None
    assert len(state_map) == 2


def test_snapshot_is_detached_from_later_writes() -> None:
    state_map = StateMap()
    state_map.put("LOGIN", "DEV1", "5.0")
    snap = state_map.snapshot()
    state_map.put("LOGIN", "DEV1", "6.0")
    snap["LOGIN"]["DEV1"] = "tampered"
    assert state_map.get("LOGIN", "DEV1") == "6.0"


def test_to_json_renders_nested_map() -> None:
    state_map = StateMap()
    state_map.put("LOGIN", "DEV1", "5.2.8")
    assert json.loads(state_map.to_json()) == {"LOGIN": {"DEV1": "5.2.8"}}


def test_concurrent_writers_and_readers() -> None:
    state_map = StateMap()

    def writer(idx: int) -> None:
        for n in range(200):
            state_map.put("S", f"k{idx}", f"1.{n}")

    def reader() -> None:
        for _ in range(200):
            state_map.snapshot()
            state_map.get("S", "k0")

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
    threads.append(threading.Thread(target=reader))
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert state_map.snapshot()["S"] == {f"k{i}": "1.199" for i in range(4)}

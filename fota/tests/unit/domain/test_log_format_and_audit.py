from __future__ import annotations

import re

from fota.domain.audit import AUDIT_HEADER, AuditRecord
from fota.domain.log_format import fit, format_log_line
from fota.domain.time_utils import strip_leading_timestamp, timestamp_with_7


def test_format_splits_level_and_tag_into_fixed_columns() -> None:
    raw = "2024-05-01T10:11:12.1234567 INFO: [NET] link up"
    formatted = format_log_line(raw)
    assert formatted == (
        "2024-05-01T10:11:12.1234567 "
        + "INFO  "
        + " "
        + "[NET]       "
        + " "
        + "link up"
    )


def test_format_without_level_or_tag_keeps_columns() -> None:
    formatted = format_log_line("2024-05-01T10:11:12.1234567 hello world")
    assert formatted.startswith("2024-05-01T10:11:12.1234567" + " " + " " * 6 + " " + " " * 12 + " ")
    assert formatted.endswith("hello world")


def test_overlong_fields_are_truncated_not_wrapped() -> None:
    formatted = format_log_line("2024-05-01T10:11:12.1234567 VERBOSE: [SUPERLONGTAG] x")
    parts = formatted.split(" ", 3)
    assert parts[1] == "VERBOS"
    assert parts[2] == "[SUPERLONGTA"
    assert "\n" not in formatted
    assert fit("abcdef", 3) == "abc"
    assert fit("ab", 4) == "ab  "


def test_timestamp_has_exactly_seven_fraction_digits() -> None:
    stamp = timestamp_with_7(1_700_000_000_123_456_789)
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{7}", stamp)
    assert stamp.endswith(".1234567")
    assert re.fullmatch(r".*\.\d{7}", timestamp_with_7())
    assert timestamp_with_7(1_700_000_000_000_000_050).endswith(".0000000")


def test_strip_leading_timestamp_only_removes_prefix() -> None:
    line = "2024-05-01T10:11:12.1234567 fw 2024-05-01T10:11:12.1234567"
    assert strip_leading_timestamp(line) == "fw 2024-05-01T10:11:12.1234567"
    assert strip_leading_timestamp("no stamp") == "no stamp"


def test_audit_row_substitutes_commas_and_blanks_none() -> None:
    record = AuditRecord(
        timestamp="2024-05-01T00:00:00+00:00",
        device_id="DEV1",
        firmware_id="fw,a",
        firmware_version="1.0",
        firmware_path="/tmp/a,b.bin",
        before_version=None,
        after_version=None,
        result="TIMEOUT",
        job_id=None,
    )
    row = record.to_row()
    assert len(row) == len(AUDIT_HEADER) == 9
    assert row[2] == "fw;a"
    assert row[4] == "/tmp/a;b.bin"
    assert row[5] == row[6] == row[8] == ""
    assert record.to_line().count(",") == 8

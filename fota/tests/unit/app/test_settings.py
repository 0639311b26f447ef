from __future__ import annotations

import json

import pytest

from fota.app.settings import FotaSettings, load_settings


def test_defaults_when_nothing_configured(tmp_path) -> None:
    settings = load_settings(tmp_path / "absent.json", environ={})
    assert settings == FotaSettings()
    assert settings.serial_wait_s == 120.0
    assert settings.poll_interval_s == 2.0
    assert settings.baud == 115200


def test_file_then_env_then_overrides(tmp_path) -> None:
    path = tmp_path / "fota_settings.json"
    path.write_text(
        json.dumps({"serial_port": "/dev/ttyUSB0", "baud": "57600", "device_id": "FILE", "unknown": 1}),
        encoding="utf-8",
    )
    env = {"FOTA_DEVICE_ID": "ENV", "FOTA_SERIAL_WAIT_S": "30", "FOTA_API_KEY": "  "}
    settings = load_settings(path, environ=env, overrides={"baud": 9600, "audit_csv": None})

    assert settings.serial_port == "/dev/ttyUSB0"
    assert settings.device_id == "ENV"
    assert settings.serial_wait_s == 30.0
    assert settings.baud == 9600
    assert settings.api_key == ""
    assert settings.audit_csv == "fota_audit.csv"


def test_invalid_numbers_are_rejected(tmp_path) -> None:
    with pytest.raises(ValueError):
        load_settings(tmp_path / "absent.json", environ={"FOTA_BAUD": "fast"})


def test_settings_file_must_be_object(tmp_path) -> None:
    path = tmp_path / "s.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path, environ={})

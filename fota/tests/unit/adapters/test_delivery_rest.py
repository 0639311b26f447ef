"""Tests for the REST delivery adapter."""

from __future__ import annotations

import json

import pytest

pytest.importorskip("requests")

from requests import exceptions as req_exc

from fota.adapters.api_errors import ApiClientError, ApiServerError, ApiTimeoutError
from fota.adapters.delivery_rest import DeliveryRestAdapter
from fota.domain.firmware import FirmwareDescriptor


class _FakeResponse:
    def __init__(self, status_code: int, payload: object = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if payload is None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    """Records calls; replays queued responses or raises queued exceptions."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = []

    def post(self, url, *, files, data, headers, timeout):
        handle = files["file"][1]
        self.calls.append(
            {
                "url": url,
                "name": files["file"][0],
                "body": handle.read(),
                "data": dict(data),
                "headers": dict(headers),
                "timeout": timeout,
            }
        )
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def firmware(tmp_path) -> FirmwareDescriptor:
    image = tmp_path / "fw_1.2.0.bin"
    image.write_bytes(b"\x01\x02firmware")
    return FirmwareDescriptor("fw-a", "1.2.0", str(image))


def test_submit_posts_multipart_and_returns_job_id(firmware) -> None:
    session = _FakeSession(_FakeResponse(201, {"job_id": "J-42"}))
    adapter = DeliveryRestAdapter(
        "https://fleet.example/api/", api_key="secret", request_timeout_s=7, session=session
    )

    assert adapter.submit("DEV 1", firmware) == "J-42"

    call = session.calls[0]
    assert call["url"] == "https://fleet.example/api/devices/DEV%201/fota"
    assert call["name"] == "fw_1.2.0.bin"
    assert call["body"] == b"\x01\x02firmware"
    assert call["data"] == {"firmware_id": "fw-a", "firmware_version": "1.2.0"}
    assert call["headers"]["X-API-Key"] == "secret"
    assert call["timeout"] == 7


def test_job_id_variants(firmware) -> None:
    session = _FakeSession(
        _FakeResponse(200, {"jobId": 17}),
        _FakeResponse(200, {"status": "queued"}),
        _FakeResponse(202, text="accepted"),
        _FakeResponse(200, ["J-1"]),
    )
    adapter = DeliveryRestAdapter("http://h", session=session)
    assert [adapter.submit("D", firmware) for _ in range(4)] == ["17", None, None, None]
    assert "X-API-Key" not in session.calls[0]["headers"]


def test_http_errors_are_typed(firmware) -> None:
    session = _FakeSession(
        _FakeResponse(404, {"detail": "unknown device", "code": "DEVICE_NOT_FOUND"}),
        _FakeResponse(503, text="maintenance"),
    )
    adapter = DeliveryRestAdapter("http://h", session=session)

    with pytest.raises(ApiClientError) as excinfo:
        adapter.submit("D", firmware)
    assert excinfo.value.status == 404
    assert excinfo.value.code == "DEVICE_NOT_FOUND"
    assert "unknown device" in str(excinfo.value)

    with pytest.raises(ApiServerError):
        adapter.submit("D", firmware)


def test_transport_failures_retry_then_raise(firmware) -> None:
    session = _FakeSession(req_exc.ConnectionError("refused"), _FakeResponse(200, {"job_id": "J-9"}))
    adapter = DeliveryRestAdapter("http://h", retries=1, session=session)
    assert adapter.submit("D", firmware) == "J-9"
    # The file handle is rewound before the retry.
    assert session.calls[1]["body"] == b"\x01\x02firmware"

    session = _FakeSession(req_exc.Timeout("slow"), req_exc.Timeout("slow"))
    adapter = DeliveryRestAdapter("http://h", retries=1, session=session)
    with pytest.raises(ApiTimeoutError):
        adapter.submit("D", firmware)
    assert len(session.calls) == 2


def test_missing_file_and_missing_base_url(tmp_path) -> None:
    with pytest.raises(ValueError):
        DeliveryRestAdapter("  ")
    adapter = DeliveryRestAdapter("http://h", session=_FakeSession())
    with pytest.raises(OSError):
        adapter.submit("D", FirmwareDescriptor("fw", "1.0", str(tmp_path / "gone.bin")))

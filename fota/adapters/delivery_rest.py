"""REST adapter implementing ``DeliveryPort``.

Uploads one firmware image per call to the fleet backend and returns the job
identifier from the JSON response.

Dependencies:
    - ``RetryingSession``/``HttpConfig`` for shared HTTP policy.
    - ``api_errors`` helpers for status-to-error conversion.

Call context:
    - Invoked by ``fota/usecases/run_rollout.py`` once per firmware step.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from fota.adapters.api_errors import raise_for_status
from fota.adapters.http_client import HttpConfig, RetryingSession
from fota.domain.firmware import FirmwareDescriptor
from fota.domain.ports import DeliveryPort


class DeliveryRestAdapter(DeliveryPort):
    """Firmware-over-the-air submission via ``POST /devices/{id}/fota``."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        request_timeout_s: int = 30,
        retries: int = 2,
        session: Any = None,
    ) -> None:
        """Create adapter for one backend.

        Args:
            base_url: Backend root URL.
            api_key: Optional API key sent as ``X-API-Key``.
            request_timeout_s: Timeout per request.
            retries: Retry count for transport failures.
            session: Optional ``requests.Session`` replacement (tests).

        Raises:
            ValueError: If ``base_url`` is empty.
        """
        base = str(base_url or "").strip()
        if not base:
            raise ValueError("DeliveryRestAdapter requires a base URL")
        self.base_url = base.rstrip("/")
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.http = RetryingSession(api_key, self.cfg, session=session)

    def submit(self, device_id: str, firmware: FirmwareDescriptor) -> Optional[str]:
        """Upload ``firmware`` for ``device_id``.

        Returns:
            Job identifier from ``job_id``/``jobId``, or ``None`` if absent.

        Raises:
            OSError: If the firmware file cannot be read.
            ApiError: For non-2xx HTTP responses.
            ApiTimeoutError: When every attempt times out.
        """
        path = Path(firmware.path).expanduser()
        url = f"{self.base_url}/devices/{quote(device_id, safe='')}/fota"
        form = {"firmware_id": firmware.firmware_id, "firmware_version": firmware.version}
        with path.open("rb") as handle:
            files = {"file": (path.name, handle, "application/octet-stream")}
            resp = self.http.post_multipart(url, files=files, data=form)
        raise_for_status(resp, f"submit[{device_id}:{firmware.firmware_id}]")
        return self._job_id(resp)

    @staticmethod
    def _job_id(resp: Any) -> Optional[str]:
        try:
            payload = resp.json()
        except ValueError:
            return None
        if not isinstance(payload, dict):
            return None
        value = payload.get("job_id") or payload.get("jobId")
        text = str(value).strip() if value is not None else ""
        return text or None


__all__ = ["DeliveryRestAdapter"]

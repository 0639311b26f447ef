"""Shared HTTP transport for the delivery adapter.

A thin wrapper around ``requests.Session`` holding the timeout policy, retry
loop and API-key header.

Dependencies:
    - ``requests`` for network I/O.
    - ``fota.adapters.api_errors.ApiTimeoutError`` for typed transport failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests import exceptions as req_exc

from fota.adapters.api_errors import ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry configuration for adapter HTTP calls.

    Attributes:
        request_timeout_s: Timeout in seconds for each request.
        retries: Number of retry attempts after the initial request.
    """
    request_timeout_s: int = 30
    retries: int = 2


class RetryingSession:
    """requests wrapper with ``X-API-Key`` headers and retry loops."""

    def __init__(self, api_key: Optional[str], cfg: HttpConfig, session: Any = None) -> None:
        self.session = session or requests.Session()
        self.api_key = api_key
        self.cfg = cfg

    def _headers(self, accept: str = "application/json") -> Dict[str, str]:
        headers = {"Accept": accept}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def post_multipart(
        self,
        url: str,
        *,
        files: Dict[str, Any],
        data: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send a multipart POST, rewinding file handles before each attempt.

        Raises:
            ApiTimeoutError: If all attempts fail with timeout/connection errors.
        """
        context = f"POST {url}"
        last_err: ApiTimeoutError | None = None
        attempts = self.cfg.retries + 1
        for _ in range(attempts):
            try:
                for value in files.values():
                    handle = value[1] if isinstance(value, tuple) and len(value) >= 2 else value
                    if hasattr(handle, "seek"):
                        handle.seek(0)
                return self.session.post(
                    url,
                    files=files,
                    data=data,
                    headers=self._headers(),
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except (req_exc.Timeout, req_exc.ConnectionError):
                last_err = ApiTimeoutError(f"Timeout contacting {url}", context=context)
        raise last_err


__all__ = ["HttpConfig", "RetryingSession"]

"""Typed errors for the delivery backend REST API."""

from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for delivery backend failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the delivery backend (bad device id, rejected image...)."""


class ApiServerError(ApiError):
    """HTTP 5xx from the delivery backend."""


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of error payload without raising."""
    try:
        return resp.json()
    except ValueError:
        snippet = getattr(resp, "text", "") or ""
        return snippet[:400] or None


def first_string(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, dict):
        for key in ("detail", "message", "error", "title"):
            candidate = first_string(payload.get(key))
            if candidate:
                return candidate
    if isinstance(payload, list):
        for item in payload:
            candidate = first_string(item)
            if candidate:
                return candidate
    return None


def extract_error_code(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("code", "error_code"):
            value = payload.get(key)
            if value is not None:
                return str(value)
    return None


def build_error_message(ctx: str, status: int, payload: Any) -> str:
    detail = first_string(payload)
    if detail:
        return f"{ctx}: {detail} (HTTP {status})"
    return f"{ctx}: HTTP {status}"


def raise_for_status(resp: Any, ctx: str) -> None:
    """Raise a typed ``ApiError`` for non-2xx responses."""
    status = resp.status_code
    if 200 <= status < 300:
        return
    payload = parse_error_payload(resp)
    message = build_error_message(ctx, status, payload)
    code = extract_error_code(payload)
    if 400 <= status < 500:
        raise ApiClientError(message, status=status, code=code, payload=payload, context=ctx)
    if 500 <= status < 600:
        raise ApiServerError(message, status=status, code=code, payload=payload, context=ctx)
    raise ApiError(message, status=status, code=code, payload=payload, context=ctx)


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "build_error_message",
    "extract_error_code",
    "first_string",
    "parse_error_payload",
    "raise_for_status",
]

"""Centralized error factory for the identity-provider REST SDK.

Maps httpx responses and exceptions onto the TransportError family, always
attaching a snapshot of the outbound request so later layers can redact it.
"""

from __future__ import annotations

import uuid
from typing import Any

import httpx

from ..errors import (
    ClientError,
    IdpSdkError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
    TransportError,
)
from ..types import OutboundRequestSnapshot


class ErrorFactory:
    """Centralized error creation with consistent structure.

    All errors created through this factory include:
    - Standardized error codes
    - Correlation IDs for tracing
    - The outbound request snapshot, when one was sent
    """

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a unique correlation ID."""
        return str(uuid.uuid4())

    @staticmethod
    def snapshot(request: httpx.Request | None) -> OutboundRequestSnapshot | None:
        """Capture method, url and headers of an httpx request."""
        if request is None:
            return None
        return OutboundRequestSnapshot.capture(
            request.method,
            str(request.url),
            request.headers,
        )

    @staticmethod
    def from_http_response(
        response: httpx.Response,
        *,
        correlation_id: str | None = None,
    ) -> TransportError:
        """Create SDK error from an unsuccessful HTTP response.

        Args:
            response: HTTP response object.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Appropriate TransportError subclass.
        """
        status = response.status_code
        correlation_id = (
            correlation_id
            or response.headers.get("x-request-id")
            or ErrorFactory.generate_correlation_id()
        )
        request = ErrorFactory.snapshot(response.request if _has_request(response) else None)
        body = _json_body(response)
        message = _error_message(body) or f"Request failed with status {status}"
        original = httpx.HTTPStatusError(
            message,
            request=response.request,
            response=response,
        ) if _has_request(response) else None

        if status == 429:
            return RateLimitError(
                message,
                retry_after=_parse_float(response.headers.get("Retry-After")),
                rate_limit_reset=_parse_float(response.headers.get("x-ratelimit-reset")),
                request=request,
                original_error=original,
                body=body,
                correlation_id=correlation_id,
            )

        if status >= 500:
            return ServerError(
                message,
                status_code=status,
                request=request,
                original_error=original,
                body=body,
                correlation_id=correlation_id,
            )

        return ClientError(
            message,
            status_code=status,
            request=request,
            original_error=original,
            body=body,
            correlation_id=correlation_id,
        )

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> IdpSdkError:
        """Create SDK error from exception.

        Args:
            exc: Original exception.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Appropriate IdpSdkError subclass.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, IdpSdkError):
            # Already an SDK error, just ensure correlation ID
            if exc.correlation_id is None:
                exc.correlation_id = correlation_id
            return exc

        if isinstance(exc, httpx.HTTPStatusError):
            return ErrorFactory.from_http_response(
                exc.response,
                correlation_id=correlation_id,
            )

        request = ErrorFactory.snapshot(_request_of(exc))

        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(
                f"Request timed out: {exc}",
                request=request,
                original_error=exc,
                correlation_id=correlation_id,
            )

        if isinstance(exc, httpx.TransportError):
            return NetworkError(
                f"Connection failed: {exc}",
                request=request,
                original_error=exc,
                correlation_id=correlation_id,
            )

        if isinstance(exc, httpx.HTTPError):
            return NetworkError(
                f"HTTP error: {exc}",
                request=request,
                original_error=exc,
                correlation_id=correlation_id,
            )

        return NetworkError(
            f"Unexpected error: {exc}",
            request=request,
            original_error=exc,
            correlation_id=correlation_id,
        )


def _has_request(response: httpx.Response) -> bool:
    try:
        response.request
    except RuntimeError:
        return False
    return True


def _request_of(exc: Exception) -> httpx.Request | None:
    try:
        return exc.request  # type: ignore[attr-defined]
    except (AttributeError, RuntimeError):
        return None


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _error_message(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    for key in ("message", "error_description", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None

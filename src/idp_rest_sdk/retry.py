"""Retrying decorator for REST resources.

``RetryingRestClient`` wraps any object exposing the CRUD surface and
re-issues calls that fail transiently: connectivity problems, timeouts,
5xx responses and rate limiting. Client errors, argument errors, token
provider failures and verification failures are terminal and surface on the
first attempt.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from .callbacks import supports_callback
from .config import RetryConfig
from .errors import (
    ArgumentError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
)
from .telemetry import get_logger
from .types import Params, RestResourceProtocol

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    RateLimitError,
    ServerError,
    NetworkError,
    TimeoutError,
    httpx.TransportError,
)


def is_retryable(error: BaseException) -> bool:
    """Check if a failure is transient and worth another attempt."""
    return isinstance(error, RETRYABLE_ERRORS)


def calculate_retry_delay(
    retry_config: RetryConfig,
    attempt: int,
    error: BaseException | None = None,
) -> float:
    """Calculate retry delay with exponential backoff.

    A rate-limited response that says when to come back overrides the
    exponential schedule, clamped to ``[initial_delay, max_delay]``.

    Args:
        retry_config: Retry configuration.
        attempt: Current attempt number (0-indexed).
        error: The failure that triggered the retry.

    Returns:
        Delay in seconds.
    """
    if isinstance(error, RateLimitError):
        hinted: float | None = None
        if error.retry_after is not None:
            hinted = error.retry_after
        elif error.rate_limit_reset is not None:
            hinted = error.rate_limit_reset - time.time()
        if hinted is not None:
            return min(max(hinted, retry_config.initial_delay), retry_config.max_delay)
    return retry_config.get_delay(attempt)


def coerce_retry_config(retry: RetryConfig | Mapping[str, Any] | None) -> RetryConfig:
    """Accept a ``RetryConfig``, a mapping of its fields, or ``None`` for defaults."""
    if retry is None:
        return RetryConfig()
    if isinstance(retry, RetryConfig):
        return retry
    if not isinstance(retry, Mapping):
        raise ArgumentError("The retry options must be a mapping", field="retry")
    try:
        return RetryConfig.model_validate(dict(retry))
    except PydanticValidationError as exc:
        raise ArgumentError(f"Invalid retry options: {exc}", field="retry") from exc


class RetryingRestClient:
    """Re-issues failed calls of a wrapped resource under a bounded backoff."""

    def __init__(
        self,
        resource: RestResourceProtocol,
        retry: RetryConfig | Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            resource: Object exposing ``create``/``get``/``get_all``/``patch``/
                ``update``/``delete``.
            retry: Policy for this instance only.

        Raises:
            ArgumentError: If ``resource`` is missing or ``retry`` is invalid.
        """
        if resource is None:
            raise ArgumentError("Must provide RestClient", field="resource")
        self.resource = resource
        self.retry = coerce_retry_config(retry)
        self._logger = get_logger()

    async def aclose(self) -> None:
        aclose = getattr(self.resource, "aclose", None)
        if aclose is not None:
            await aclose()

    async def _attempt(self, operation: str, args: tuple[Any, ...]) -> Any:
        result = getattr(self.resource, operation)(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _execute(self, operation: str, *args: Any) -> Any:
        if not self.retry.enabled:
            return await self._attempt(operation, args)

        max_attempts = self.retry.max_retries + 1
        for attempt in range(max_attempts):
            try:
                return await self._attempt(operation, args)
            except Exception as exc:
                if not is_retryable(exc):
                    raise
                if attempt + 1 >= max_attempts:
                    self._logger.error(
                        "Retries exhausted",
                        operation=operation,
                        attempts=attempt + 1,
                        error=str(exc),
                    )
                    raise
                delay = calculate_retry_delay(self.retry, attempt, exc)
                self._logger.warning(
                    "Request failed, retrying",
                    operation=operation,
                    attempt=attempt,
                    delay=delay,
                    error=str(exc),
                )
                await asyncio.sleep(delay)

        # unreachable: the last attempt either returns or raises
        raise AssertionError(operation)

    @supports_callback
    async def create(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._execute("create", params, data)

    @supports_callback
    async def get(self, params: Params | None = None) -> Any:
        return await self._execute("get", params)

    @supports_callback
    async def get_all(self, params: Params | None = None) -> Any:
        return await self._execute("get_all", params)

    @supports_callback
    async def patch(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._execute("patch", params, data)

    @supports_callback
    async def update(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._execute("update", params, data)

    @supports_callback
    async def delete(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._execute("delete", params, data)

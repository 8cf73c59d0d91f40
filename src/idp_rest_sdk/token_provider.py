"""Access token providers for authenticated REST clients."""

from __future__ import annotations

import asyncio
from typing import Any, Self

import httpx
from pydantic import ValidationError as PydanticValidationError

from .config import SdkConfig
from .core.errors import ErrorFactory
from .errors import ArgumentError, TokenProviderError
from .models import TokenData, TokenResponse
from .telemetry import SDK_NAME, SDK_VERSION, get_logger, trace_operation


class StaticTokenProvider:
    """Hands out one fixed access token."""

    def __init__(self, token: str) -> None:
        if not isinstance(token, str) or not token:
            raise ArgumentError("Must provide a non-empty access token", field="token")
        self._token = token

    async def get_access_token(self) -> str:
        return self._token


class ClientCredentialsTokenProvider:
    """Obtains management API tokens with the client credentials grant.

    The token is kept in memory only and reused until it is within
    ``buffer_seconds`` of expiry. Concurrent callers share one refresh.
    """

    def __init__(
        self,
        config: SdkConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        buffer_seconds: int = 60,
        scope: str | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: SDK configuration; ``client_secret`` is required.
            http_client: Shared client; one is created (and owned) if omitted.
            buffer_seconds: Refresh this long before the token expires.
            scope: Optional space separated scopes to request.

        Raises:
            ArgumentError: If no client secret is configured.
        """
        if config.client_secret is None or not config.client_secret.get_secret_value():
            raise ArgumentError(
                "client_secret required for client credentials flow",
                field="client_secret",
            )
        self.config = config
        self.buffer_seconds = buffer_seconds
        self.scope = scope
        self._http = http_client
        self._owns_http = http_client is None
        self._tokens: TokenData | None = None
        self._lock = asyncio.Lock()
        self._logger = get_logger()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={"User-Agent": f"{SDK_NAME}/{SDK_VERSION} Python"},
            )
        return self._http

    @property
    def tokens(self) -> TokenData | None:
        """Get current token data."""
        return self._tokens

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    def invalidate(self) -> None:
        """Drop the cached token so the next call fetches a new one."""
        self._tokens = None

    async def get_access_token(self) -> str:
        """Get a valid access token, requesting a new one if needed.

        Raises:
            TokenProviderError: If the token request fails.
        """
        async with self._lock:
            if self._tokens is None or self._tokens.is_expired():
                self._tokens = await self._request_token()
            return self._tokens.access_token

    async def _request_token(self) -> TokenData:
        data: dict[str, Any] = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret.get_secret_value(),  # type: ignore[union-attr]
            "audience": self.config.audience,
        }
        if self.scope:
            data["scope"] = self.scope

        with trace_operation(
            "idp.token.client_credentials",
            attributes={"idp.domain": self.config.domain},
        ):
            try:
                response = await self.http.post(
                    self.config.token_endpoint,
                    data=data,
                    headers={"Accept": "application/json"},
                )
            except httpx.HTTPError as exc:
                error = ErrorFactory.from_exception(exc)
                raise TokenProviderError(error.message, original_error=error) from error

            if response.is_error:
                error = ErrorFactory.from_http_response(response)
                self._logger.warning(
                    "Token request failed",
                    status_code=response.status_code,
                    correlation_id=error.correlation_id,
                )
                raise TokenProviderError(
                    error.message,
                    original_error=error,
                    correlation_id=error.correlation_id,
                ) from error

            try:
                token_response = TokenResponse.model_validate(response.json())
            except (ValueError, PydanticValidationError) as exc:
                raise TokenProviderError(f"Invalid token response: {exc}", original_error=exc) from exc

        self._logger.debug("Access token obtained", expires_in=token_response.expires_in)
        return TokenData.from_response(token_response, buffer_seconds=self.buffer_seconds)

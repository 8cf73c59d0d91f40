"""Bearer-token injecting REST client.

Every call first asks the token provider for a credential, then sends the
request with ``Authorization: Bearer <token>``. The header is built per call
and never written into the shared options. When the call fails, the bearer
value is redacted from the captured outbound request before the error
propagates.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any

import httpx

from .callbacks import supports_callback
from .config import RestClientOptions
from .errors import ArgumentError, TokenProviderError
from .rest import RestResource, coerce_rest_options, validate_resource_url
from .telemetry import get_logger
from .types import REDACTED, OutboundRequestSnapshot, Params, TokenProvider

AUTHORIZATION_HEADER = "authorization"


def sanitize_error(error: BaseException) -> None:
    """Redact the credential from the request captured on ``error``.

    Best-effort: a failure here is logged and swallowed so it can never
    replace the error being reported.
    """
    try:
        snapshot = getattr(error, "request", None)
        if isinstance(snapshot, OutboundRequestSnapshot):
            snapshot.redact(AUTHORIZATION_HEADER, REDACTED)

        original = getattr(error, "original_error", None)
        if isinstance(original, (httpx.HTTPStatusError, httpx.RequestError)):
            request = original.request
            if AUTHORIZATION_HEADER in request.headers:
                request.headers[AUTHORIZATION_HEADER] = REDACTED
    except Exception:
        get_logger().debug("Failed to sanitize error", error_type=type(error).__name__, exc_info=True)


class AuthenticatedRestClient:
    """REST resource whose calls carry a fresh bearer credential."""

    def __init__(
        self,
        resource_url: str,
        options: RestClientOptions | Mapping[str, Any],
        token_provider: TokenProvider | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            resource_url: URL template of the resource.
            options: Static headers and identifier placeholder name.
            token_provider: Source of access tokens. Without one, calls are
                sent unauthenticated.
            http_client: Shared httpx client.

        Raises:
            ArgumentError: If the URL is missing or invalid, or options are missing.
        """
        validate_resource_url(resource_url)
        self.options = coerce_rest_options(options)
        if token_provider is not None and not callable(
            getattr(token_provider, "get_access_token", None)
        ):
            raise ArgumentError(
                "The token provider must expose get_access_token()",
                field="token_provider",
            )
        self.token_provider = token_provider
        self.rest_client = RestResource(resource_url, self.options, http_client=http_client)

    async def aclose(self) -> None:
        await self.rest_client.aclose()

    async def _authorization_headers(self) -> dict[str, str]:
        if self.token_provider is None:
            return {}
        try:
            token = self.token_provider.get_access_token()
            if inspect.isawaitable(token):
                token = await token
        except TokenProviderError:
            raise
        except Exception as exc:
            raise TokenProviderError(str(exc), original_error=exc) from exc
        return {"Authorization": f"Bearer {token}"}

    async def _call(self, operation: str, *args: Any) -> Any:
        headers = await self._authorization_headers()
        try:
            return await getattr(self.rest_client, operation)(*args, headers=headers)
        except Exception as exc:
            sanitize_error(exc)
            raise

    @supports_callback
    async def create(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._call("create", params, data)

    @supports_callback
    async def get(self, params: Params | None = None) -> Any:
        return await self._call("get", params)

    @supports_callback
    async def get_all(self, params: Params | None = None) -> Any:
        return await self._call("get_all", params)

    @supports_callback
    async def patch(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._call("patch", params, data)

    @supports_callback
    async def update(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._call("update", params, data)

    @supports_callback
    async def delete(self, params: Params | None = None, data: Any = None) -> Any:
        return await self._call("delete", params, data)

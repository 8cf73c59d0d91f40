"""Management API client wiring the managers to one transport."""

from __future__ import annotations

from typing import Any, Self

import httpx

from ..config import ManagerOptions, RestClientOptions, SdkConfig
from ..rest import create_async_http_client
from ..telemetry import get_logger
from ..token_provider import ClientCredentialsTokenProvider
from ..types import TokenProvider
from .clients import ClientsManager
from .roles import RolesManager


class ManagementClient:
    """Entry point to the management API.

    Owns one shared ``httpx.AsyncClient`` (unless one is passed in) and, when
    no token provider is given, a client credentials provider built from the
    configuration.

    Example:
        >>> async with ManagementClient(SdkConfig.from_env()) as management:
        ...     role = await management.roles.get({"id": "rol_123"})
    """

    def __init__(
        self,
        config: SdkConfig,
        *,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._owns_http = http_client is None
        self._http = http_client or create_async_http_client(
            RestClientOptions(headers=config.headers, timeout=config.timeout)
        )
        self.token_provider = token_provider or ClientCredentialsTokenProvider(
            config, http_client=self._http
        )

        options = ManagerOptions(
            base_url=config.base_url,
            headers=config.headers,
            retry=config.retry,
            token_provider=self.token_provider,
            http_client=self._http,
            timeout=config.timeout,
        )
        self.clients = ClientsManager(options)
        self.roles = RolesManager(options)
        get_logger().debug("Management client created", domain=config.domain)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_http:
            await self._http.aclose()

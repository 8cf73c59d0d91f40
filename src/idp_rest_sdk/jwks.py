"""Async JWKS resolver with a TTL cache.

Signing keys are fetched from the identity provider's
``/.well-known/jwks.json``, converted once into verification keys with PyJWT
and cached by key id. An unknown key id triggers one refetch before the
lookup fails, so key rotation is picked up without waiting for the TTL.
Such refetches happen at most once per ``refetch_interval_seconds`` so a
stream of tokens with bogus key ids cannot hammer the endpoint.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import httpx
import jwt

from .callbacks import supports_callback
from .errors import JWKSError, SigningKeyNotFoundError
from .models import JWK, JWKS
from .telemetry import get_logger, trace_operation


@dataclass(frozen=True, slots=True)
class SigningKey:
    """Verification key resolved from the key set."""

    kid: str
    alg: str | None
    public_key: Any

    def get_public_key(self) -> Any:
        return self.public_key


class JWKSClient:
    """Async-safe signing key resolver with configurable TTL."""

    def __init__(
        self,
        jwks_uri: str,
        *,
        ttl_seconds: int = 600,
        refetch_interval_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        http_timeout: float = 10.0,
    ) -> None:
        """Initialize JWKS client.

        Args:
            jwks_uri: URI to fetch JWKS from.
            ttl_seconds: Cache TTL in seconds.
            refetch_interval_seconds: Minimum time between refetches caused by
                an unknown key id.
            http_client: Shared client; a short-lived one is used per fetch if omitted.
            http_timeout: HTTP request timeout.
        """
        self.jwks_uri = jwks_uri
        self.ttl_seconds = ttl_seconds
        self.refetch_interval_seconds = refetch_interval_seconds
        self.http_timeout = http_timeout

        self._http = http_client
        self._keys: dict[str, SigningKey] = {}
        self._cache_time: float | None = None
        self._last_miss_refetch: float | None = None
        self._lock = asyncio.Lock()
        self._logger = get_logger()

    @property
    def is_cached(self) -> bool:
        """Check if the key set is currently cached."""
        return self._cache_time is not None and not self._should_refresh()

    def _should_refresh(self) -> bool:
        if self._cache_time is None:
            return True
        return time.monotonic() - self._cache_time > self.ttl_seconds

    @supports_callback
    async def get_signing_key(self, kid: str | None) -> SigningKey:
        """Get signing key by key ID.

        Args:
            kid: Key ID from the token header.

        Returns:
            The matching signing key.

        Raises:
            SigningKeyNotFoundError: If no key matches, even after a refetch.
            JWKSError: If the key set cannot be fetched or parsed.
        """
        async with self._lock:
            refreshed = False
            if self._should_refresh():
                await self._refresh()
                refreshed = True

            key = self._keys.get(kid) if kid is not None else None
            if key is None and not refreshed and self._may_refetch_on_miss():
                # possibly rotated since the last fetch
                self._last_miss_refetch = time.monotonic()
                await self._refresh()
                key = self._keys.get(kid) if kid is not None else None

            if key is None:
                raise SigningKeyNotFoundError(kid)
            return key

    def _may_refetch_on_miss(self) -> bool:
        if self._last_miss_refetch is None:
            return True
        return time.monotonic() - self._last_miss_refetch >= self.refetch_interval_seconds

    async def invalidate(self) -> None:
        """Invalidate the cache, forcing refresh on next access."""
        async with self._lock:
            self._keys = {}
            self._cache_time = None
            self._last_miss_refetch = None

    async def _refresh(self) -> None:
        with trace_operation("idp.jwks.fetch", attributes={"jwks.uri": self.jwks_uri}):
            data = await self._fetch()
            try:
                jwks = JWKS(keys=[JWK(**key) for key in data.get("keys", [])])
            except (AttributeError, TypeError, ValueError) as e:
                raise JWKSError(f"Failed to parse JWKS: {e}") from e

            keys: dict[str, SigningKey] = {}
            for jwk in jwks.get_signing_keys():
                try:
                    public_key = jwt.PyJWK(jwk.model_dump(exclude_none=True)).key
                except jwt.PyJWTError as e:
                    self._logger.warning("Skipping unusable signing key", kid=jwk.kid, error=str(e))
                    continue
                keys[jwk.kid] = SigningKey(kid=jwk.kid, alg=jwk.alg, public_key=public_key)  # type: ignore[arg-type]

            self._keys = keys
            self._cache_time = time.monotonic()

    async def _fetch(self) -> Any:
        try:
            if self._http is not None:
                response = await self._http.get(self.jwks_uri)
            else:
                async with httpx.AsyncClient(timeout=self.http_timeout) as client:
                    response = await client.get(self.jwks_uri)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise JWKSError(f"Failed to fetch JWKS: {e}") from e
        except ValueError as e:
            raise JWKSError(f"Failed to parse JWKS: {e}") from e

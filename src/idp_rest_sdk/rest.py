"""Generic REST resource over httpx.

``RestResource`` is the transport primitive the rest of the SDK decorates:
it expands the resource URL, sends one request and turns unsuccessful
responses into ``TransportError`` instances carrying a snapshot of what was
sent. It never retries and never authenticates.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Self

import httpx
from pydantic import ValidationError as PydanticValidationError

from .callbacks import supports_callback
from .config import RestClientOptions
from .core.errors import ErrorFactory
from .encoding import RequestEncoder
from .errors import ArgumentError
from .telemetry import SDK_NAME, SDK_VERSION, get_logger, trace_operation
from .types import Params, RequestDescriptor


def create_async_http_client(options: RestClientOptions) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        options: REST client options.

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=options.connect_timeout,
            read=options.timeout,
            write=options.timeout,
            pool=options.timeout,
        ),
        headers={
            "User-Agent": f"{SDK_NAME}/{SDK_VERSION} Python",
            "Accept": "application/json",
        },
        follow_redirects=False,
    )


def validate_resource_url(resource_url: Any) -> str:
    """Reject a missing or unusable resource URL."""
    if resource_url is None:
        raise ArgumentError("Must provide a Resource Url", field="resource_url")
    if not isinstance(resource_url, str) or not resource_url:
        raise ArgumentError("The provided Resource Url is invalid", field="resource_url")
    return resource_url


def coerce_rest_options(options: Any) -> RestClientOptions:
    """Accept a ``RestClientOptions`` or a plain mapping of its fields."""
    if options is None:
        raise ArgumentError("Must provide options", field="options")
    if isinstance(options, RestClientOptions):
        return options
    if not isinstance(options, Mapping):
        raise ArgumentError("The provided options must be a mapping", field="options")
    try:
        return RestClientOptions.model_validate(dict(options))
    except PydanticValidationError as exc:
        raise ArgumentError(f"Invalid options: {exc}", field="options") from exc


class RestResource:
    """CRUD access to one REST resource URL."""

    def __init__(
        self,
        resource_url: str,
        options: RestClientOptions | Mapping[str, Any] | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the resource.

        Args:
            resource_url: URL template, e.g. ``https://tenant/api/v2/users/:id``.
            options: Static headers, identifier placeholder and timeouts.
            http_client: Shared client; one is created (and owned) if omitted.
        """
        self.resource_url = validate_resource_url(resource_url)
        self.options = coerce_rest_options(RestClientOptions() if options is None else options)
        self._encoder = RequestEncoder(self.resource_url, id_param=self.options.id_param)
        self._http = http_client
        self._owns_http = http_client is None
        self._logger = get_logger()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = create_async_http_client(self.options)
        return self._http

    async def aclose(self) -> None:
        """Close the HTTP client if this resource created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    def build_request(
        self,
        method: str,
        params: Params | None = None,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestDescriptor:
        """Build the immutable descriptor of one call."""
        target = self._encoder.encode(params)
        # header names are case-insensitive; per-call values replace static ones
        merged = httpx.Headers(self.options.headers)
        merged.update(headers or {})
        return RequestDescriptor(
            method=method,
            path=target.url,
            query=target.query,
            headers=dict(merged.items()),
            json=data,
        )

    async def send(self, request: RequestDescriptor) -> Any:
        """Send one request and decode the response body.

        Raises:
            TransportError: On connectivity failure or a non-2xx status.
        """
        with trace_operation(
            "idp.rest.request",
            attributes={"http.method": request.method, "http.url": request.path},
        ):
            try:
                response = await self.http.request(
                    request.method,
                    request.path,
                    params=dict(request.query) or None,
                    headers=dict(request.headers),
                    json=request.json,
                )
            except httpx.HTTPError as exc:
                raise ErrorFactory.from_exception(exc) from exc

            if response.is_error:
                error = ErrorFactory.from_http_response(response)
                self._logger.debug(
                    "Request failed",
                    method=request.method,
                    url=request.path,
                    status_code=response.status_code,
                    correlation_id=error.correlation_id,
                )
                raise error

            return _decode_body(response)

    @supports_callback
    async def create(
        self,
        params: Params | None = None,
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.send(self.build_request("POST", params, data, headers))

    @supports_callback
    async def get(
        self,
        params: Params | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.send(self.build_request("GET", params, None, headers))

    @supports_callback
    async def get_all(
        self,
        params: Params | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.send(self.build_request("GET", params, None, headers))

    @supports_callback
    async def patch(
        self,
        params: Params | None = None,
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.send(self.build_request("PATCH", params, data, headers))

    @supports_callback
    async def update(
        self,
        params: Params | None = None,
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.send(self.build_request("PUT", params, data, headers))

    @supports_callback
    async def delete(
        self,
        params: Params | None = None,
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.send(self.build_request("DELETE", params, data, headers))


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text

"""Shared wiring for the management API resource managers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..authenticated import AuthenticatedRestClient
from ..config import ManagerOptions
from ..errors import ArgumentError
from ..retry import RetryingRestClient
from ..types import Callback, Params


def resolve_manager_options(
    options: ManagerOptions | Mapping[str, Any] | None,
    *,
    missing_message: str = "Must provide manager options",
) -> ManagerOptions:
    """Validate manager options, raising a distinct error per problem."""
    if isinstance(options, ManagerOptions):
        return options
    if options is None or not isinstance(options, Mapping):
        raise ArgumentError(missing_message, field="options")

    base_url = options.get("base_url")
    if base_url is None:
        raise ArgumentError("Must provide a base URL for the API", field="base_url")
    if not isinstance(base_url, str) or not base_url:
        raise ArgumentError("The provided base URL is invalid", field="base_url")

    try:
        return ManagerOptions.model_validate(dict(options))
    except PydanticValidationError as exc:
        raise ArgumentError(f"Invalid manager options: {exc}", field="options") from exc


class BaseManager:
    """CRUD facade over one retrying, authenticated resource."""

    missing_options_message = "Must provide manager options"

    def __init__(self, options: ManagerOptions | Mapping[str, Any]) -> None:
        self.options = resolve_manager_options(
            options, missing_message=self.missing_options_message
        )
        self._resources: list[RetryingRestClient] = []

    def build_resource(self, path: str, *, id_param: str = "id") -> RetryingRestClient:
        """Stack retry over authentication for ``<base_url><path>``."""
        client = AuthenticatedRestClient(
            f"{self.options.base_url}{path}",
            self.options.rest_options(id_param=id_param),
            self.options.token_provider,
            http_client=self.options.http_client,
        )
        resource = RetryingRestClient(client, self.options.retry)
        self._resources.append(resource)
        return resource

    async def aclose(self) -> None:
        for resource in self._resources:
            await resource.aclose()

    @property
    def resource(self) -> RetryingRestClient:
        return self._resources[0]

    def create(self, data: Any, *, callback: Callback | None = None) -> Any:
        return self.resource.create(None, data, callback=callback)

    def get_all(self, params: Params | None = None, *, callback: Callback | None = None) -> Any:
        return self.resource.get_all(params, callback=callback)

    def get(self, params: Params, *, callback: Callback | None = None) -> Any:
        return self.resource.get(params, callback=callback)

    def update(self, params: Params, data: Any, *, callback: Callback | None = None) -> Any:
        return self.resource.patch(params, data, callback=callback)

    def delete(self, params: Params, *, callback: Callback | None = None) -> Any:
        return self.resource.delete(params, callback=callback)

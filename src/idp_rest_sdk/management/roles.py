"""Roles, their permissions and their users."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..config import ManagerOptions
from ..errors import ArgumentError
from ..types import Callback, Params
from .base import BaseManager


def require_role_id(params: Params | None) -> Params:
    """Raise at call entry unless ``params["id"]`` is a non-empty string."""
    params = params or {}
    role_id = params.get("id")
    if not role_id:
        raise ArgumentError("The roleId passed in params cannot be null or undefined", field="id")
    if not isinstance(role_id, str):
        raise ArgumentError("The role Id has to be a string", field="id")
    return params


class RolesManager(BaseManager):
    """CRUD on ``/roles/:id`` plus the permissions and users of a role."""

    def __init__(self, options: ManagerOptions | Mapping[str, Any]) -> None:
        super().__init__(options)
        self.build_resource("/roles/:id")
        self.permissions = self.build_resource("/roles/:id/permissions")
        self.users = self.build_resource("/roles/:id/users")

    def get_permissions(self, params: Params | None = None, *, callback: Callback | None = None) -> Any:
        return self.permissions.get_all(params, callback=callback)

    def add_permissions(
        self, params: Params | None, data: Any = None, *, callback: Callback | None = None
    ) -> Any:
        params = require_role_id(params)
        return self.permissions.create(params, data or {}, callback=callback)

    def remove_permissions(
        self, params: Params | None, data: Any = None, *, callback: Callback | None = None
    ) -> Any:
        params = require_role_id(params)
        return self.permissions.delete(params, data or {}, callback=callback)

    def get_users(self, params: Params | None = None, *, callback: Callback | None = None) -> Any:
        return self.users.get_all(params, callback=callback)

    def assign_users(
        self, params: Params | None, data: Any = None, *, callback: Callback | None = None
    ) -> Any:
        params = require_role_id(params)
        return self.users.create(params, data or {}, callback=callback)

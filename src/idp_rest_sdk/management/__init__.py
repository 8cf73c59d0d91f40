"""Management API resource managers."""

from .base import BaseManager, resolve_manager_options
from .client import ManagementClient
from .clients import ClientsManager
from .roles import RolesManager

__all__ = [
    "BaseManager",
    "ClientsManager",
    "ManagementClient",
    "RolesManager",
    "resolve_manager_options",
]

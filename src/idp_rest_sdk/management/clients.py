"""Applications (clients) of the tenant."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..config import ManagerOptions
from .base import BaseManager


class ClientsManager(BaseManager):
    """CRUD on ``/clients/:client_id``."""

    missing_options_message = "Must provide client options"

    def __init__(self, options: ManagerOptions | Mapping[str, Any]) -> None:
        super().__init__(options)
        self.build_resource("/clients/:client_id", id_param="client_id")

"""Type definitions for the identity-provider REST SDK."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

REDACTED = "[REDACTED]"

Params = Mapping[str, Any]
Callback = Callable[[BaseException | None, Any], None]


@runtime_checkable
class TokenProvider(Protocol):
    """Produces a bearer credential on demand."""

    def get_access_token(self) -> Awaitable[str]:
        """Return an awaitable resolving to the access token."""
        ...


@runtime_checkable
class RestResourceProtocol(Protocol):
    """CRUD surface shared by every REST layer of the SDK."""

    def create(self, params: Params | None = None, data: Any = None, **kwargs: Any) -> Any: ...

    def get(self, params: Params | None = None, **kwargs: Any) -> Any: ...

    def get_all(self, params: Params | None = None, **kwargs: Any) -> Any: ...

    def patch(self, params: Params | None = None, data: Any = None, **kwargs: Any) -> Any: ...

    def update(self, params: Params | None = None, data: Any = None, **kwargs: Any) -> Any: ...

    def delete(self, params: Params | None = None, data: Any = None, **kwargs: Any) -> Any: ...


@runtime_checkable
class JWKSResolver(Protocol):
    """Resolves a signing key by key id.

    The returned object must expose the verification key as ``public_key``
    (or ``key``, as PyJWT's ``PyJWK`` does). Implementations may return the
    key directly or an awaitable.
    """

    def get_signing_key(self, kid: str | None) -> Any: ...


JWKSClientFactory = Callable[[str], JWKSResolver]


@dataclass(slots=True)
class OutboundRequestSnapshot:
    """What was sent on the wire, captured when a call fails.

    Header names are stored lower-cased.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def capture(cls, method: str, url: str, headers: Mapping[str, str]) -> OutboundRequestSnapshot:
        return cls(
            method=method.upper(),
            url=url,
            headers={name.lower(): value for name, value in headers.items()},
        )

    def redact(self, header: str = "authorization", marker: str = REDACTED) -> bool:
        """Replace the value of ``header``; return whether it was present."""
        key = header.lower()
        if key not in self.headers:
            return False
        self.headers[key] = marker
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method, "url": self.url, "headers": dict(self.headers)}


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """Immutable description of one outbound call, built fresh per call."""

    method: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    json: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "query", MappingProxyType(dict(self.query)))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

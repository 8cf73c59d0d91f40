"""URL template expansion for REST resources.

A resource URL such as ``https://tenant/api/v2/roles/:id/users`` carries
``:name`` placeholders. One of them, the identifier, is percent-encoded with
an empty safe set so values like ``auth0|1234/5678`` cannot escape their path
segment. Other placeholders keep ``/``, ``:`` and ``@``. Parameters that match
no placeholder become query parameters and are left to the transport's query
encoding.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from .errors import ArgumentError

PLACEHOLDER_RE = re.compile(r"(/?):([A-Za-z_][A-Za-z0-9_]*)")
_DANGLING_RE = re.compile(r":(?![A-Za-z_])|:$")

STRICT_SAFE = ""
PATH_SAFE = "/:@"


@dataclass(frozen=True, slots=True)
class UrlTemplate:
    """Immutable resource URL with ``:name`` placeholders."""

    template: str
    placeholders: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.template, str) or not self.template:
            raise ArgumentError("The provided Resource Url is invalid", field="resource_url")
        _, rest = _split_scheme(self.template)
        if _DANGLING_RE.search(rest):
            raise ArgumentError(
                f"Malformed placeholder in resource url: {self.template}",
                field="resource_url",
            )
        names = tuple(match.group(2) for match in PLACEHOLDER_RE.finditer(rest))
        object.__setattr__(self, "placeholders", names)

    def expand(self, values: Mapping[str, str]) -> str:
        """Substitute already-encoded values, dropping segments of missing ones."""
        scheme, rest = _split_scheme(self.template)

        def substitute(match: re.Match[str]) -> str:
            slash, name = match.groups()
            if name not in values:
                # drop the whole "/:name" segment
                return ""
            return f"{slash}{values[name]}"

        return f"{scheme}{PLACEHOLDER_RE.sub(substitute, rest)}"


@dataclass(frozen=True, slots=True)
class EncodedRequest:
    """Target of one call: the expanded URL and the remaining query params."""

    url: str
    query: dict[str, str]


class RequestEncoder:
    """Turns a URL template and call params into a concrete request target."""

    def __init__(self, template: UrlTemplate | str, *, id_param: str = "id") -> None:
        self.template = template if isinstance(template, UrlTemplate) else UrlTemplate(template)
        self.id_param = id_param

    def encode(self, params: Mapping[str, Any] | None = None) -> EncodedRequest:
        params = dict(params or {})
        path_values: dict[str, str] = {}
        for name in self.template.placeholders:
            value = params.pop(name, None)
            if value is None or value == "":
                continue
            safe = STRICT_SAFE if name == self.id_param else PATH_SAFE
            path_values[name] = quote(str(value), safe=safe)

        return EncodedRequest(
            url=self.template.expand(path_values),
            query=encode_query(params),
        )


def encode_query(params: Mapping[str, Any]) -> dict[str, str]:
    """Stringify query values; ``None`` is dropped and lists are comma-joined."""
    query: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            query[key] = ",".join(_query_value(v) for v in value)
        else:
            query[key] = _query_value(value)
    return query


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _split_scheme(url: str) -> tuple[str, str]:
    """Split ``https://host`` so the ``:`` of the scheme is not a placeholder."""
    match = re.match(r"^[A-Za-z][A-Za-z0-9+.-]*://[^/]*", url)
    if match is None:
        return "", url
    return match.group(0), url[match.end():]

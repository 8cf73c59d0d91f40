"""Configuration for the identity-provider REST SDK.

Uses Pydantic v2 frozen models so every option struct is validated once at
construction and treated as read-only for the lifetime of a client.
"""

from __future__ import annotations

import random
from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

SYMMETRIC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})
ASYMMETRIC_ALGORITHMS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512", "ES256", "ES384", "ES512"}
)
DEFAULT_ID_TOKEN_ALGORITHMS = ("HS256", "RS256")


class RetryConfig(BaseModel):
    """Retry policy with jittered exponential backoff."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    max_retries: Annotated[int, Field(ge=0, le=10)] = 3
    initial_delay: Annotated[float, Field(ge=0, le=60)] = 0.25
    max_delay: Annotated[float, Field(ge=0, le=300)] = 10.0
    exponential_base: Annotated[float, Field(ge=1.0, le=3.0)] = 2.0
    jitter: Annotated[float, Field(ge=0, le=1.0)] = 0.1

    @model_validator(mode="after")
    def check_delay_bounds(self) -> Self:
        if self.max_delay < self.initial_delay:
            msg = "max_delay must be greater than or equal to initial_delay"
            raise ValueError(msg)
        return self

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt with exponential backoff."""
        delay = min(
            self.initial_delay * (self.exponential_base**attempt),
            self.max_delay,
        )
        # Add jitter to prevent thundering herd
        jitter_range = delay * self.jitter
        return max(0.0, delay + random.uniform(-jitter_range, jitter_range))  # noqa: S311


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "idp-rest-sdk"
    log_level: str = "INFO"
    json_logs: bool = True


class RestClientOptions(BaseModel):
    """Options shared by every call of one REST resource."""

    model_config = ConfigDict(frozen=True)

    headers: dict[str, str] = Field(default_factory=dict)
    id_param: str = Field(default="id", min_length=1)
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0


class ManagerOptions(BaseModel):
    """Options for the resource managers."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str = Field(..., min_length=1)
    headers: dict[str, str] = Field(default_factory=dict)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    token_provider: Any = None
    http_client: Any = None
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def rest_options(self, *, id_param: str = "id") -> RestClientOptions:
        return RestClientOptions(headers=self.headers, id_param=id_param, timeout=self.timeout)


class IdTokenValidationConfig(BaseModel):
    """How the token-exchange wrapper verifies returned id_tokens."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    domain: str = Field(..., min_length=1)
    client_id: str | None = None
    client_secret: SecretStr | None = None
    supported_algorithms: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ID_TOKEN_ALGORITHMS), min_length=1
    )
    bypass_id_token_validation: bool = False
    jwks_client_factory: Any = None
    leeway: Annotated[int, Field(ge=0, le=600)] = 60

    @field_validator("supported_algorithms")
    @classmethod
    def validate_algorithms(cls, v: list[str]) -> list[str]:
        """Validate every algorithm is one PyJWT can verify."""
        supported = SYMMETRIC_ALGORITHMS | ASYMMETRIC_ALGORITHMS
        unknown = [alg for alg in v if alg not in supported]
        if unknown:
            msg = f"Unsupported id_token algorithms: {unknown}. Supported: {sorted(supported)}"
            raise ValueError(msg)
        return v

    @property
    def issuer(self) -> str:
        return f"https://{self.domain}/"

    @property
    def jwks_uri(self) -> str:
        return f"https://{self.domain}/.well-known/jwks.json"


class SdkConfig(BaseModel):
    """Top-level configuration for a management API client."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Required
    domain: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)

    # Authentication
    client_secret: SecretStr | None = None
    audience: str | None = None

    # HTTP settings
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0

    # Sub-configurations
    retry: RetryConfig = Field(default_factory=RetryConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("domain")
    @classmethod
    def strip_scheme(cls, v: str) -> str:
        """Accept ``tenant.example.com`` as well as ``https://tenant.example.com/``."""
        for prefix in ("https://", "http://"):
            if v.startswith(prefix):
                v = v[len(prefix):]
        return v.rstrip("/")

    @model_validator(mode="after")
    def set_default_audience(self) -> Self:
        # Use object.__setattr__ since model is frozen
        if self.audience is None:
            object.__setattr__(self, "audience", f"https://{self.domain}/api/v2/")
        return self

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}/api/v2"

    @property
    def token_endpoint(self) -> str:
        return f"https://{self.domain}/oauth/token"

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "IDP_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        domain = get_env("DOMAIN")
        if not domain:
            msg = f"{prefix}DOMAIN environment variable is required"
            raise ValueError(msg)

        client_id = get_env("CLIENT_ID")
        if not client_id:
            msg = f"{prefix}CLIENT_ID environment variable is required"
            raise ValueError(msg)

        return cls(
            domain=domain,
            client_id=client_id,
            client_secret=get_env("CLIENT_SECRET"),
            audience=get_env("AUDIENCE"),
            timeout=float(get_env("TIMEOUT", "30.0")),
            retry=RetryConfig(max_retries=int(get_env("MAX_RETRIES", "3"))),
        )

"""Pydantic models for the identity-provider REST SDK."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """OAuth 2.0 token response from the authorization server."""

    model_config = ConfigDict(frozen=True, extra="allow")

    access_token: str = Field(..., min_length=1)
    token_type: str = Field(default="Bearer")
    expires_in: Annotated[int, Field(gt=0)] = 86400
    refresh_token: str | None = None
    scope: str | None = None
    id_token: str | None = None


class TokenData(BaseModel):
    """In-memory token storage with expiration tracking."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str
    expires_at: datetime
    scope: str | None = None

    @classmethod
    def from_response(
        cls,
        response: TokenResponse,
        *,
        buffer_seconds: int = 60,
    ) -> Self:
        """Create TokenData from TokenResponse with expiration calculation."""
        expires_at = datetime.now(UTC) + timedelta(
            seconds=max(0, response.expires_in - buffer_seconds)
        )
        return cls(
            access_token=response.access_token,
            token_type=response.token_type,
            expires_at=expires_at,
            scope=response.scope,
        )

    def is_expired(self) -> bool:
        """Check if token is expired."""
        return datetime.now(UTC) >= self.expires_at

    def time_until_expiry(self) -> timedelta:
        """Get time remaining until token expires."""
        return self.expires_at - datetime.now(UTC)


class JWK(BaseModel):
    """JSON Web Key representation."""

    model_config = ConfigDict(frozen=True, extra="allow")

    kty: str = Field(..., description="Key type")
    kid: str | None = Field(default=None, description="Key ID")
    use: str | None = Field(default=None, description="Key use")
    alg: str | None = Field(default=None, description="Algorithm")

    # RSA keys
    n: str | None = None
    e: str | None = None
    x5c: list[str] | None = None

    # EC keys
    crv: str | None = None
    x: str | None = None
    y: str | None = None


class JWKS(BaseModel):
    """JSON Web Key Set."""

    model_config = ConfigDict(frozen=True)

    keys: list[JWK]

    def get_key(self, kid: str) -> JWK | None:
        """Get key by ID."""
        for key in self.keys:
            if key.kid == kid:
                return key
        return None

    def get_signing_keys(self) -> list[JWK]:
        """Get all keys suitable for signature verification."""
        return [
            k
            for k in self.keys
            if k.use in (None, "sig") and k.kty in ("RSA", "EC") and k.kid
        ]

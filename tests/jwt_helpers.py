"""Key generation and token minting for identity token tests."""

from __future__ import annotations

import base64
import json
import time
from types import SimpleNamespace
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from idp_rest_sdk.errors import SigningKeyNotFoundError

from fakes import CLIENT_ID, DOMAIN

HMAC_SECRET = b"an-hmac-secret-that-is-at-least-32-bytes-long"
HMAC_SECRET_B64 = base64.b64encode(HMAC_SECRET).decode("ascii")


def int_to_base64url(n: int, length: int | None = None) -> str:
    byte_length = length or (n.bit_length() + 7) // 8
    data = n.to_bytes(byte_length, byteorder="big")
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_rsa_key_pair(kid: str = "test-rsa-key-1") -> tuple[rsa.RSAPrivateKey, dict[str, Any]]:
    """Generate RSA key pair and JWK."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_numbers = private_key.public_key().public_numbers()
    jwk_dict = {
        "kty": "RSA",
        "n": int_to_base64url(public_numbers.n),
        "e": int_to_base64url(public_numbers.e),
        "kid": kid,
        "use": "sig",
        "alg": "RS256",
    }
    return private_key, jwk_dict


def generate_ec_key_pair(kid: str = "test-ec-key-1") -> tuple[ec.EllipticCurvePrivateKey, dict[str, Any]]:
    """Generate EC key pair and JWK."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    public_numbers = private_key.public_key().public_numbers()
    jwk_dict = {
        "kty": "EC",
        "crv": "P-256",
        "x": int_to_base64url(public_numbers.x, 32),
        "y": int_to_base64url(public_numbers.y, 32),
        "kid": kid,
        "use": "sig",
        "alg": "ES256",
    }
    return private_key, jwk_dict


def id_token_claims(**overrides: Any) -> dict[str, Any]:
    """Claims of a valid identity token for the test tenant."""
    now = int(time.time())
    claims: dict[str, Any] = {
        "iss": f"https://{DOMAIN}/",
        "sub": "auth0|user-1",
        "aud": CLIENT_ID,
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    return {key: value for key, value in claims.items() if value is not None}


def mint_id_token(
    claims: dict[str, Any],
    key: Any,
    *,
    algorithm: str = "RS256",
    kid: str | None = None,
) -> str:
    headers = {"kid": kid} if kid else None
    return jwt.encode(claims, key, algorithm=algorithm, headers=headers)


def tamper_payload(token: str, **changes: Any) -> str:
    """Swap in a modified payload while keeping the original signature."""
    header, payload, signature = token.split(".")
    padded = payload + "=" * (-len(payload) % 4)
    claims = json.loads(base64.urlsafe_b64decode(padded))
    claims.update(changes)
    forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode("ascii")
    return f"{header}.{forged}.{signature}"


class StaticJWKSResolver:
    """In-memory key resolver recording requested key ids."""

    def __init__(self, keys: dict[str, Any] | None = None) -> None:
        self.keys = keys or {}
        self.requested: list[str | None] = []

    def get_signing_key(self, kid: str | None) -> Any:
        self.requested.append(kid)
        if kid not in self.keys:
            raise SigningKeyNotFoundError(kid)
        return SimpleNamespace(kid=kid, public_key=self.keys[kid])

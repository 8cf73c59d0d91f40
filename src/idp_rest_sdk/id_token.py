"""Local claims validation for identity tokens.

Runs after the signature has been checked (or deliberately skipped) and
enforces the OpenID Connect claim rules that a generic JWT library does not:
subject presence, organization, nonce, authorized party and max age.
Checks run in a fixed order and the first failure wins.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import jwt

from .errors import IdTokenValidationError

DEFAULT_LEEWAY = 60


@dataclass(frozen=True, slots=True)
class VerificationOptions:
    """What a verified identity token must assert.

    Built fresh for each exchange from the static client configuration plus
    the ``organization``, ``nonce`` and ``max_age`` of the exchange request.
    """

    algorithms: tuple[str, ...]
    audience: str | None
    issuer: str
    organization: str | None = None
    nonce: str | None = None
    max_age: int | None = None
    leeway: int = DEFAULT_LEEWAY


def decode_unverified(token: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return ``(header, payload)`` without checking the signature."""
    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise IdTokenValidationError("ID token could not be decoded") from exc
    return header, payload


def validate_id_token(
    token: str | None,
    options: VerificationOptions,
    *,
    now: float | None = None,
) -> dict[str, Any]:
    """Validate the claims of an identity token.

    Args:
        token: Encoded JWT.
        options: Expected algorithm, issuer, audience and request bound claims.
        now: Current epoch seconds, for tests.

    Returns:
        The decoded payload.

    Raises:
        IdTokenValidationError: On the first failing check.
    """
    if not token:
        raise IdTokenValidationError("ID token is required but missing")

    header, payload = decode_unverified(token)

    check_algorithm(header.get("alg"), options.algorithms)

    _check_issuer(payload, options)
    if not _is_str(payload.get("sub")):
        raise IdTokenValidationError(
            "Subject (sub) claim must be a string present in the ID token", claim="sub"
        )
    _check_audience(payload, options)
    if options.organization:
        _check_organization(payload, options.organization.strip())
    if options.nonce:
        _check_nonce(payload, options.nonce)
    _check_authorized_party(payload, options)
    _check_times(payload, options, int(time.time() if now is None else now))
    return payload


def check_algorithm(alg: Any, algorithms: tuple[str, ...]) -> None:
    """Reject a header ``alg`` outside the allow-list."""
    if alg not in algorithms:
        raise IdTokenValidationError(
            f'Signature algorithm of "{alg}" is not supported. '
            f'Expected the ID token to be signed with "{",".join(algorithms)}".',
            claim="alg",
        )


def _is_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_issuer(payload: Mapping[str, Any], options: VerificationOptions) -> None:
    iss = payload.get("iss")
    if not _is_str(iss):
        raise IdTokenValidationError(
            "Issuer (iss) claim must be a string present in the ID token", claim="iss"
        )
    if iss != options.issuer:
        raise IdTokenValidationError(
            f'Issuer (iss) claim mismatch in the ID token; expected "{options.issuer}", found "{iss}"',
            claim="iss",
        )


def _check_audience(payload: Mapping[str, Any], options: VerificationOptions) -> None:
    aud = payload.get("aud")
    if not aud or not isinstance(aud, (str, Sequence)):
        raise IdTokenValidationError(
            "Audience (aud) claim must be a string or array of strings present in the ID token",
            claim="aud",
        )
    if isinstance(aud, str):
        if aud != options.audience:
            raise IdTokenValidationError(
                f'Audience (aud) claim mismatch in the ID token; expected "{options.audience}" '
                f'but found "{aud}"',
                claim="aud",
            )
    elif options.audience not in aud:
        raise IdTokenValidationError(
            f'Audience (aud) claim mismatch in the ID token; expected "{options.audience}" '
            f'but was not one of "{", ".join(str(a) for a in aud)}"',
            claim="aud",
        )


def _check_organization(payload: Mapping[str, Any], organization: str) -> None:
    if organization.startswith("org_"):
        org_id = payload.get("org_id")
        if not _is_str(org_id):
            raise IdTokenValidationError(
                "Organization Id (org_id) claim must be a string present in the ID token",
                claim="org_id",
            )
        if org_id != organization:
            raise IdTokenValidationError(
                f'Organization Id (org_id) claim value mismatch in the ID token; '
                f'expected "{organization}", found "{org_id}"',
                claim="org_id",
            )
        return

    org_name = payload.get("org_name")
    if not _is_str(org_name):
        raise IdTokenValidationError(
            "Organization Name (org_name) claim must be a string present in the ID token",
            claim="org_name",
        )
    if org_name.lower() != organization.lower():
        raise IdTokenValidationError(
            f'Organization Name (org_name) claim value mismatch in the ID token; '
            f'expected "{organization}", found "{org_name}"',
            claim="org_name",
        )


def _check_nonce(payload: Mapping[str, Any], nonce: str) -> None:
    value = payload.get("nonce")
    if not _is_str(value):
        raise IdTokenValidationError(
            "Nonce (nonce) claim must be a string present in the ID token", claim="nonce"
        )
    if value != nonce:
        raise IdTokenValidationError(
            f'Nonce (nonce) claim mismatch in the ID token; expected "{nonce}", found "{value}"',
            claim="nonce",
        )


def _check_authorized_party(payload: Mapping[str, Any], options: VerificationOptions) -> None:
    aud = payload.get("aud")
    if isinstance(aud, str) or len(aud) <= 1:
        return
    azp = payload.get("azp")
    if not _is_str(azp):
        raise IdTokenValidationError(
            "Authorized Party (azp) claim must be a string present in the ID token "
            "when Audience (aud) claim has multiple values",
            claim="azp",
        )
    if azp != options.audience:
        raise IdTokenValidationError(
            f'Authorized Party (azp) claim mismatch in the ID token; '
            f'expected "{options.audience}", found "{azp}"',
            claim="azp",
        )


def _check_times(payload: Mapping[str, Any], options: VerificationOptions, now: int) -> None:
    exp = payload.get("exp")
    if not _is_number(exp):
        raise IdTokenValidationError(
            "Expiration Time (exp) claim must be a number present in the ID token", claim="exp"
        )
    exp_time = exp + options.leeway
    if now > exp_time:
        raise IdTokenValidationError(
            f"Expiration Time (exp) claim error in the ID token; current time ({now}) "
            f"is after expiration time ({exp_time})",
            claim="exp",
        )

    if not _is_number(payload.get("iat")):
        raise IdTokenValidationError(
            "Issued At (iat) claim must be a number present in the ID token", claim="iat"
        )

    if options.max_age:
        auth_time = payload.get("auth_time")
        if not _is_number(auth_time):
            raise IdTokenValidationError(
                "Authentication Time (auth_time) claim must be a number present in the ID token "
                "when Max Age (max_age) is specified",
                claim="auth_time",
            )
        auth_valid_until = auth_time + options.max_age + options.leeway
        if now > auth_valid_until:
            raise IdTokenValidationError(
                "Authentication Time (auth_time) claim in the ID token indicates that too much "
                f"time has passed since the last end-user authentication. Current time ({now}) "
                f"is after last auth at {auth_valid_until}",
                claim="auth_time",
            )

"""Token exchange with identity-token verification.

``IdTokenVerifyingOAuthClient`` decorates a token-exchange resource: after a
successful exchange, an ``id_token`` in the response is verified (signature,
algorithm, issuer, audience and the request bound claims) before the
response is handed back. A verification failure fails the call, so the
caller never receives an unverified token.

One relaxation exists: a symmetrically signed token when no client secret is
configured. Its signature cannot be checked, so a warning is logged and only
the claims are validated.
"""

from __future__ import annotations

import base64
import binascii
import inspect
from collections.abc import Mapping
from typing import Any

import jwt
import structlog
from pydantic import ValidationError as PydanticValidationError

from .callbacks import supports_callback
from .config import (
    SYMMETRIC_ALGORITHMS,
    IdTokenValidationConfig,
    RestClientOptions,
    RetryConfig,
    SdkConfig,
)
from .errors import (
    ArgumentError,
    IdTokenValidationError,
    JWKSError,
    VerificationError,
)
from .id_token import VerificationOptions, check_algorithm, validate_id_token
from .jwks import JWKSClient
from .rest import RestResource
from .retry import RetryingRestClient
from .telemetry import get_logger, trace_operation
from .types import JWKSResolver, Params, RestResourceProtocol

SYMMETRIC_SECRET_MISSING_MESSAGE = (
    "Validation of `id_token` requires a `client_secret` when using a symmetric "
    "(HS256, HS384, HS512) algorithm. To ensure tokens are validated, please switch "
    "the signing algorithm to RS256 or provide a `client_secret`."
)

# sentinel: signature check skipped, claims still validated
_UNVERIFIABLE = object()


def coerce_validation_config(options: Any) -> IdTokenValidationConfig:
    """Accept an ``IdTokenValidationConfig`` or a mapping of its fields."""
    if options is None:
        raise ArgumentError("Missing authenticator options", field="options")
    if isinstance(options, IdTokenValidationConfig):
        return options
    if not isinstance(options, Mapping):
        raise ArgumentError("The authenticator options must be an object", field="options")
    try:
        return IdTokenValidationConfig.model_validate(dict(options))
    except PydanticValidationError as exc:
        raise ArgumentError(f"Invalid authenticator options: {exc}", field="options") from exc


def decode_client_secret(secret: str) -> bytes:
    """Decode a base64 (standard or URL-safe, padding optional) client secret."""
    normalized = secret.strip().replace("+", "-").replace("/", "_")
    try:
        return base64.urlsafe_b64decode(normalized + "=" * (-len(normalized) % 4))
    except (binascii.Error, ValueError) as exc:
        raise VerificationError("The configured client secret is not valid base64") from exc


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ArgumentError(f"The {key} must be a string", field=key)
    return value


def _optional_seconds(data: Mapping[str, Any], key: str) -> int | None:
    """Read a duration in seconds; form-encoded strings such as ``"300"`` are accepted."""
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ArgumentError(f"The {key} must be a number of seconds", field=key)
    try:
        seconds = int(value)
    except (TypeError, ValueError) as exc:
        raise ArgumentError(f"The {key} must be a number of seconds", field=key) from exc
    if seconds < 0:
        raise ArgumentError(f"The {key} must not be negative", field=key)
    return seconds


class IdTokenVerifyingOAuthClient:
    """Verifies identity tokens returned by a token exchange."""

    def __init__(
        self,
        oauth: RestResourceProtocol,
        options: IdTokenValidationConfig | Mapping[str, Any],
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            oauth: Token-exchange resource; only ``create`` is used.
            options: Domain, client credentials, allowed algorithms, bypass
                flag and an optional JWKS resolver factory.
            logger: Receives the symmetric-secret warning.

        Raises:
            ArgumentError: If ``oauth`` or ``options`` is missing or invalid.
        """
        if oauth is None:
            raise ArgumentError("Missing token exchange client", field="oauth")
        self.oauth = oauth
        self.config = coerce_validation_config(options)
        self._logger = logger if logger is not None else get_logger()

        factory = self.config.jwks_client_factory or JWKSClient
        self._jwks_client: JWKSResolver = factory(self.config.jwks_uri)

    @property
    def jwks_client(self) -> JWKSResolver:
        return self._jwks_client

    async def aclose(self) -> None:
        aclose = getattr(self.oauth, "aclose", None)
        if aclose is not None:
            await aclose()

    def verification_options(self, data: Mapping[str, Any] | None) -> VerificationOptions:
        """Build the per-exchange expectations from config and request data."""
        data = data or {}
        return VerificationOptions(
            algorithms=tuple(self.config.supported_algorithms),
            audience=self.config.client_id,
            issuer=self.config.issuer,
            organization=_optional_str(data, "organization"),
            nonce=_optional_str(data, "nonce"),
            max_age=_optional_seconds(data, "max_age"),
            leeway=self.config.leeway,
        )

    @supports_callback
    async def create(self, params: Params | None = None, data: Any = None) -> Any:
        """Perform the exchange and verify the returned ``id_token``, if any.

        Raises:
            ArgumentError: If ``organization``, ``nonce`` or ``max_age`` in
                ``data`` has the wrong type; no exchange is attempted.
            VerificationError: If the identity token fails verification.
        """
        options: VerificationOptions | None = None
        if not self.config.bypass_id_token_validation:
            options = self.verification_options(data if isinstance(data, Mapping) else None)

        response = self.oauth.create(params, data)
        if inspect.isawaitable(response):
            response = await response

        if options is None:
            return response

        id_token = response.get("id_token") if isinstance(response, Mapping) else None
        if not id_token:
            return response

        with trace_operation(
            "idp.oauth.verify_id_token",
            attributes={"idp.domain": self.config.domain},
        ):
            await self.verify(id_token, options)
        return response

    async def verify(self, id_token: str, options: VerificationOptions) -> dict[str, Any]:
        """Check the signature and standard claims, then the local claim rules."""
        try:
            header = jwt.get_unverified_header(id_token)
        except jwt.PyJWTError as exc:
            raise IdTokenValidationError("ID token could not be decoded") from exc

        alg = header.get("alg")
        check_algorithm(alg, options.algorithms)

        key = await self._resolve_key(alg, header.get("kid"))
        if key is _UNVERIFIABLE:
            self._logger.warning(
                SYMMETRIC_SECRET_MISSING_MESSAGE,
                alg=alg,
                domain=self.config.domain,
            )
        else:
            try:
                jwt.decode(
                    id_token,
                    key,
                    algorithms=list(options.algorithms),
                    audience=options.audience,
                    issuer=options.issuer,
                    leeway=options.leeway,
                    options={"verify_aud": options.audience is not None},
                )
            except jwt.PyJWTError as exc:
                raise IdTokenValidationError(str(exc)) from exc

        return validate_id_token(id_token, options)

    async def _resolve_key(self, alg: str, kid: str | None) -> Any:
        if alg in SYMMETRIC_ALGORITHMS:
            if self.config.client_secret is None or not self.config.client_secret.get_secret_value():
                return _UNVERIFIABLE
            return decode_client_secret(self.config.client_secret.get_secret_value())

        try:
            signing_key = self._jwks_client.get_signing_key(kid)
            if inspect.isawaitable(signing_key):
                signing_key = await signing_key
        except VerificationError:
            raise
        except Exception as exc:
            raise JWKSError(str(exc)) from exc

        public_key = getattr(signing_key, "public_key", None)
        if public_key is None:
            public_key = getattr(signing_key, "key", signing_key)
        return public_key


def create_token_exchange_client(
    config: SdkConfig,
    *,
    retry: RetryConfig | Mapping[str, Any] | None = None,
    validation: Mapping[str, Any] | None = None,
    http_client: Any = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> IdTokenVerifyingOAuthClient:
    """Build the token-exchange stack for ``https://<domain>/oauth/token``.

    Args:
        config: SDK configuration.
        retry: Retry policy override; defaults to ``config.retry``.
        validation: Extra ``IdTokenValidationConfig`` fields, e.g.
            ``supported_algorithms`` or ``jwks_client_factory``.
        http_client: Shared httpx.AsyncClient.
        logger: Receives the symmetric-secret warning.

    Returns:
        Verifying client over a retrying, unauthenticated token resource.
    """
    resource = RestResource(
        config.token_endpoint,
        RestClientOptions(headers=config.headers, timeout=config.timeout),
        http_client=http_client,
    )
    retrying = RetryingRestClient(resource, config.retry if retry is None else retry)
    options: dict[str, Any] = {
        "domain": config.domain,
        "client_id": config.client_id,
        "client_secret": config.client_secret,
    }
    options.update(validation or {})
    return IdTokenVerifyingOAuthClient(retrying, options, logger=logger)

"""Error classes for the identity-provider REST SDK.

Structured error hierarchy with error codes and correlation IDs. Argument
errors, credential acquisition failures, transport failures and identity
token verification failures are distinct branches so callers (and the retry
layer) can tell them apart by type.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import OutboundRequestSnapshot


class ErrorCode(StrEnum):
    """Standardized error codes for the SDK."""

    # Argument errors (1xxx)
    INVALID_ARGUMENT = "ARG_1001"
    INVALID_CONFIG = "ARG_1002"

    # Credential errors (2xxx)
    TOKEN_PROVIDER_FAILED = "AUTH_2001"

    # Network errors (3xxx)
    NETWORK_ERROR = "NET_3001"
    TIMEOUT_ERROR = "NET_3002"
    CONNECTION_ERROR = "NET_3003"

    # HTTP client errors (4xxx)
    CLIENT_ERROR = "HTTP_4000"
    UNAUTHORIZED = "HTTP_4001"
    FORBIDDEN = "HTTP_4003"
    NOT_FOUND = "HTTP_4004"
    RATE_LIMITED = "HTTP_4029"

    # Server errors (5xxx)
    SERVER_ERROR = "SRV_5001"
    SERVICE_UNAVAILABLE = "SRV_5003"

    # Verification errors (6xxx)
    ID_TOKEN_INVALID = "VER_6001"
    SIGNING_KEY_NOT_FOUND = "VER_6002"
    JWKS_UNAVAILABLE = "VER_6003"


class IdpSdkError(Exception):
    """Base error for the SDK with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ArgumentError(IdpSdkError, ValueError):
    """Malformed construction input or missing required call parameters."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_ARGUMENT,
            details={"field": field} if field else None,
        )
        self.field = field


class TokenProviderError(IdpSdkError):
    """The token provider failed to produce a credential.

    The message is the provider's own message, unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        original_error: BaseException | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.TOKEN_PROVIDER_FAILED,
            correlation_id=correlation_id,
        )
        self.original_error = original_error
        self.__cause__ = original_error


class TransportError(IdpSdkError):
    """Network or HTTP-layer failure of an outbound call."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.NETWORK_ERROR,
        *,
        status_code: int | None = None,
        request: OutboundRequestSnapshot | None = None,
        original_error: BaseException | None = None,
        body: Any = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            status_code=status_code,
            correlation_id=correlation_id,
            details=details,
        )
        self.request = request
        self.original_error = original_error
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.request is not None:
            data["request"] = self.request.to_dict()
        return data


class NetworkError(TransportError):
    """Connection could not be established or was dropped."""

    def __init__(
        self,
        message: str = "Network request failed",
        *,
        request: OutboundRequestSnapshot | None = None,
        original_error: BaseException | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.CONNECTION_ERROR,
            request=request,
            original_error=original_error,
            correlation_id=correlation_id,
            details={"cause": str(original_error)} if original_error else None,
        )
        self.__cause__ = original_error


class TimeoutError(TransportError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        request: OutboundRequestSnapshot | None = None,
        original_error: BaseException | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.TIMEOUT_ERROR,
            request=request,
            original_error=original_error,
            correlation_id=correlation_id,
        )
        self.__cause__ = original_error


class ClientError(TransportError):
    """The API rejected the request (4xx other than rate limiting)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        request: OutboundRequestSnapshot | None = None,
        original_error: BaseException | None = None,
        body: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            _client_error_code(status_code),
            status_code=status_code,
            request=request,
            original_error=original_error,
            body=body,
            correlation_id=correlation_id,
        )


class RateLimitError(TransportError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: float | None = None,
        rate_limit_reset: float | None = None,
        request: OutboundRequestSnapshot | None = None,
        original_error: BaseException | None = None,
        body: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if retry_after is not None:
            details["retry_after"] = retry_after
        if rate_limit_reset is not None:
            details["rate_limit_reset"] = rate_limit_reset
        super().__init__(
            message,
            ErrorCode.RATE_LIMITED,
            status_code=429,
            request=request,
            original_error=original_error,
            body=body,
            correlation_id=correlation_id,
            details=details or None,
        )
        self.retry_after = retry_after
        self.rate_limit_reset = rate_limit_reset


class ServerError(TransportError):
    """Server-side error."""

    def __init__(
        self,
        message: str = "Server error",
        *,
        status_code: int = 500,
        request: OutboundRequestSnapshot | None = None,
        original_error: BaseException | None = None,
        body: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.SERVICE_UNAVAILABLE if status_code == 503 else ErrorCode.SERVER_ERROR,
            status_code=status_code,
            request=request,
            original_error=original_error,
            body=body,
            correlation_id=correlation_id,
        )


class VerificationError(IdpSdkError):
    """Identity token signature or claims verification failed."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.ID_TOKEN_INVALID,
        *,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            status_code=401,
            correlation_id=correlation_id,
            details=details,
        )


class IdTokenValidationError(VerificationError):
    """The id_token failed signature or claims checks."""

    def __init__(
        self,
        message: str,
        *,
        claim: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.ID_TOKEN_INVALID,
            correlation_id=correlation_id,
            details={"claim": claim} if claim else None,
        )
        self.claim = claim


class JWKSError(VerificationError):
    """The key set could not be fetched or parsed."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.JWKS_UNAVAILABLE,
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message, code, correlation_id=correlation_id)


class SigningKeyNotFoundError(JWKSError):
    """No key in the key set matches the token's key id."""

    def __init__(self, kid: str | None) -> None:
        super().__init__(
            f"Unable to find a signing key that matches '{kid}'",
            ErrorCode.SIGNING_KEY_NOT_FOUND,
        )
        self.kid = kid


def _client_error_code(status_code: int) -> ErrorCode:
    return {
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
    }.get(status_code, ErrorCode.CLIENT_ERROR)

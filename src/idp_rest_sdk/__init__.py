"""Identity-provider REST SDK."""

from .authenticated import AuthenticatedRestClient
from .callbacks import Outcome, supports_callback
from .config import (
    IdTokenValidationConfig,
    ManagerOptions,
    RestClientOptions,
    RetryConfig,
    SdkConfig,
    TelemetryConfig,
)
from .encoding import RequestEncoder, UrlTemplate
from .errors import (
    ArgumentError,
    ClientError,
    ErrorCode,
    IdpSdkError,
    IdTokenValidationError,
    JWKSError,
    NetworkError,
    RateLimitError,
    ServerError,
    SigningKeyNotFoundError,
    TimeoutError,
    TokenProviderError,
    TransportError,
    VerificationError,
)
from .id_token import VerificationOptions, validate_id_token
from .jwks import JWKSClient, SigningKey
from .management import ClientsManager, ManagementClient, RolesManager
from .oauth import IdTokenVerifyingOAuthClient, create_token_exchange_client
from .rest import RestResource
from .retry import RetryingRestClient
from .telemetry import configure_telemetry
from .token_provider import ClientCredentialsTokenProvider, StaticTokenProvider
from .types import OutboundRequestSnapshot, TokenProvider

__all__ = [
    "AuthenticatedRestClient",
    "ArgumentError",
    "ClientCredentialsTokenProvider",
    "ClientError",
    "ClientsManager",
    "ErrorCode",
    "IdTokenValidationConfig",
    "IdTokenValidationError",
    "IdTokenVerifyingOAuthClient",
    "IdpSdkError",
    "JWKSClient",
    "JWKSError",
    "ManagementClient",
    "ManagerOptions",
    "NetworkError",
    "Outcome",
    "OutboundRequestSnapshot",
    "RateLimitError",
    "RequestEncoder",
    "RestClientOptions",
    "RestResource",
    "RetryConfig",
    "RetryingRestClient",
    "RolesManager",
    "SdkConfig",
    "ServerError",
    "SigningKey",
    "SigningKeyNotFoundError",
    "StaticTokenProvider",
    "TelemetryConfig",
    "TimeoutError",
    "TokenProvider",
    "TokenProviderError",
    "TransportError",
    "UrlTemplate",
    "VerificationError",
    "VerificationOptions",
    "configure_telemetry",
    "create_token_exchange_client",
    "supports_callback",
    "validate_id_token",
]

__version__ = "0.1.0"

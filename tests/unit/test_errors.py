"""Unit tests for the error hierarchy and ErrorFactory."""

from __future__ import annotations

import httpx
import pytest

from idp_rest_sdk.core.errors import ErrorFactory
from idp_rest_sdk.errors import (
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

URL = "https://tenant.example.com/api/v2/roles/rol_1"


def response(status_code: int, **kwargs: object) -> httpx.Response:
    request = httpx.Request("GET", URL, headers={"Authorization": "Bearer t"})
    return httpx.Response(status_code, request=request, **kwargs)  # type: ignore[arg-type]


class TestHierarchy:
    """Tests for error class relationships."""

    @pytest.mark.parametrize(
        ("error", "base"),
        [
            (ArgumentError("x"), ValueError),
            (ClientError("x"), TransportError),
            (RateLimitError(), TransportError),
            (ServerError(), TransportError),
            (NetworkError(), TransportError),
            (TimeoutError(), TransportError),
            (IdTokenValidationError("x"), VerificationError),
            (SigningKeyNotFoundError("k"), JWKSError),
            (JWKSError("x"), VerificationError),
            (TokenProviderError("x"), IdpSdkError),
        ],
    )
    def test_subclass(self, error: Exception, base: type[Exception]) -> None:
        assert isinstance(error, base)
        assert isinstance(error, IdpSdkError)

    def test_token_provider_error_is_not_transport_error(self) -> None:
        assert not isinstance(TokenProviderError("x"), TransportError)

    def test_codes(self) -> None:
        assert ClientError("x", status_code=404).code == ErrorCode.NOT_FOUND
        assert ClientError("x", status_code=422).code == ErrorCode.CLIENT_ERROR
        assert ServerError(status_code=503).code == ErrorCode.SERVICE_UNAVAILABLE
        assert ServerError(status_code=500).code == ErrorCode.SERVER_ERROR
        assert RateLimitError().status_code == 429

    def test_signing_key_not_found_message(self) -> None:
        error = SigningKeyNotFoundError("abc")
        assert str(error) == "Unable to find a signing key that matches 'abc'"
        assert error.code == ErrorCode.SIGNING_KEY_NOT_FOUND


class TestErrorFactory:
    """Tests for mapping HTTP outcomes onto SDK errors."""

    def test_client_error_with_message(self) -> None:
        error = ErrorFactory.from_http_response(response(404, json={"message": "Role not found"}))

        assert isinstance(error, ClientError)
        assert error.message == "Role not found"
        assert error.status_code == 404
        assert error.body == {"message": "Role not found"}
        assert isinstance(error.original_error, httpx.HTTPStatusError)

    def test_error_description_fallback(self) -> None:
        error = ErrorFactory.from_http_response(
            response(400, json={"error": "invalid_grant", "error_description": "Wrong code"})
        )
        assert error.message == "Wrong code"

    def test_plain_text_body(self) -> None:
        error = ErrorFactory.from_http_response(response(502, text="Bad Gateway"))
        assert isinstance(error, ServerError)
        assert error.message == "Request failed with status 502"
        assert error.body == "Bad Gateway"

    def test_rate_limit_headers(self) -> None:
        error = ErrorFactory.from_http_response(
            response(429, headers={"Retry-After": "2", "x-ratelimit-reset": "1700000000"})
        )
        assert isinstance(error, RateLimitError)
        assert error.retry_after == 2.0
        assert error.rate_limit_reset == 1700000000.0

    def test_request_id_becomes_correlation_id(self) -> None:
        error = ErrorFactory.from_http_response(response(500, headers={"x-request-id": "req-1"}))
        assert error.correlation_id == "req-1"

    def test_snapshot_in_to_dict(self) -> None:
        error = ErrorFactory.from_http_response(response(401))
        data = error.to_dict()
        assert data["request"]["method"] == "GET"
        assert data["request"]["url"] == URL
        assert data["request"]["headers"]["authorization"] == "Bearer t"

    def test_timeout(self) -> None:
        request = httpx.Request("GET", URL)
        error = ErrorFactory.from_exception(httpx.ReadTimeout("slow", request=request))
        assert isinstance(error, TimeoutError)
        assert error.request is not None
        assert error.request.url == URL

    def test_connect_error(self) -> None:
        error = ErrorFactory.from_exception(httpx.ConnectError("refused"))
        assert isinstance(error, NetworkError)
        assert error.request is None

    def test_sdk_error_passes_through(self) -> None:
        original = ClientError("x")
        assert ErrorFactory.from_exception(original) is original
        assert original.correlation_id is not None

"""
Shared test fixtures for the identity-provider REST SDK tests.

Provides common fixtures for configuration, token providers and key
material.
"""

from __future__ import annotations

from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from idp_rest_sdk.config import RetryConfig, SdkConfig

from fakes import CLIENT_ID, DOMAIN, FakeTokenProvider
from jwt_helpers import generate_rsa_key_pair


@pytest.fixture
def retry_config() -> RetryConfig:
    """Provide a retry policy that never actually waits."""
    return RetryConfig(
        max_retries=3,
        initial_delay=0.0,
        max_delay=0.0,
        exponential_base=2.0,
        jitter=0.0,
    )


@pytest.fixture
def sdk_config() -> SdkConfig:
    """Provide a basic SDK configuration for testing."""
    return SdkConfig(
        domain=DOMAIN,
        client_id=CLIENT_ID,
        client_secret="test-client-secret",
        retry=RetryConfig(max_retries=2, initial_delay=0.0, max_delay=0.0, jitter=0.0),
    )


@pytest.fixture
def token_provider() -> FakeTokenProvider:
    """Provide a token provider returning a fixed token."""
    return FakeTokenProvider("test-access-token")


@pytest.fixture(scope="session")
def rsa_key_pair() -> tuple[rsa.RSAPrivateKey, dict[str, Any]]:
    """Provide one RSA key pair and its JWK for the whole session."""
    return generate_rsa_key_pair()

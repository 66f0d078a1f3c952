"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Hardhat default account #0; never holds real funds
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"

PLAYGAME_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TOKENSTORE_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    from gamebridge.core.config import Settings

    return Settings(
        environment="testing",
        private_key=TEST_PRIVATE_KEY,
        playgame_address=PLAYGAME_ADDRESS,
        tokenstore_address=TOKENSTORE_ADDRESS,
        event_listener_enabled=False,
    )


@pytest.fixture
def chain_client():
    """Create a mocked chain client."""
    from gamebridge.infrastructure.blockchain.client import ChainClient

    client = AsyncMock(spec=ChainClient)
    client.health_check.return_value = True
    return client


@pytest.fixture
def services(settings, chain_client):
    """Wire services around the mocked chain client."""
    from gamebridge.services.dependencies import build_services

    return build_services(settings, client=chain_client)


@pytest.fixture
def app(settings, services):
    """Create FastAPI application for testing."""
    from gamebridge.main import create_app

    return create_app(settings=settings, services=services)


@pytest.fixture
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client

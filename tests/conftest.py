"""Pytest configuration and fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from dynqr.common.logging_config import setup_logging
from dynqr.database.memory import MemoryRecordStore
from dynqr.service import QRCodeService
from dynqr.shortid import ShortIdGenerator
from web_app import create_app

TEST_API_KEY = "test-api-key"


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def store(logger) -> MemoryRecordStore:
    """Create in-memory record store."""
    return MemoryRecordStore(logger=logger)


@pytest.fixture
def short_id_generator():
    """Create short id generator."""
    return ShortIdGenerator()


@pytest.fixture
def service(store, short_id_generator, logger) -> QRCodeService:
    """Create service instance."""
    return QRCodeService(
        store=store,
        cache=None,  # No cache for tests
        short_id_generator=short_id_generator,
        logger=logger,
    )


@pytest.fixture
def config() -> Config:
    return Config(
        database_url="memory://",
        base_url="http://testserver",
        api_key=TEST_API_KEY,
    )


@pytest.fixture
def app(service, config):
    """Create test FastAPI app."""
    return create_app(service_instance=service, config=config)


@pytest.fixture
async def client(app):
    """Create authenticated test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://testserver",
        headers={"X-API-Key": TEST_API_KEY},
    ) as ac:
        yield ac


@pytest.fixture
async def anonymous_client(app):
    """Create test client without credentials."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_contact():
    """Sample contact card payload."""
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@x.com",
    }

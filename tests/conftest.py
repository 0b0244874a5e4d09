"""Pytest configuration and fixtures for the storefront service."""

from decimal import Decimal

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from storefront.models.catalog import DeliveryPartner, Product
from storefront.services.storage.kv_store import InMemoryKeyValueStore, get_redis_client
from storefront.services.storage.preferences import PreferenceRepository


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


def build_product(product_id: str, **overrides) -> Product:
    """Create a product with sensible defaults for engine tests."""
    record = {
        "id": product_id,
        "name": f"Product {product_id}",
        "price": 100,
        "category": "Outerwear",
        "colors": [{"name": "Black", "value": "#000000"}],
        "sizes": [{"name": "M", "value": "m", "inStock": True}],
        "tags": [],
        "rating": 4.0,
        "reviews": 10,
        "inStock": True,
    }
    record.update(overrides)
    return Product.model_validate(record)


@pytest.fixture
def make_product():
    return build_product


@pytest.fixture
def sample_catalog() -> list[Product]:
    return [
        build_product(
            "coat",
            name="Cashmere Coat",
            price=899.5,
            originalPrice=1299,
            category="Outerwear",
            colors=["Camel", "Black"],
            sizes=["S", "M", "L"],
            tags=["luxury", "winter"],
            rating=4.8,
            quality=9.5,
            popularity=247,
        ),
        build_product(
            "dress",
            name="Silk Dress",
            price=449,
            category="Dresses",
            colors=[{"name": "Emerald", "value": "#50C878"}],
            sizes=["XS", "S"],
            tags=["silk", "evening"],
            rating=4.6,
            quality=9.0,
            popularity=189,
        ),
        build_product(
            "scarf",
            name="silk scarf",
            price=89,
            originalPrice=129,
            category="Accessories",
            colors=["Coral Pink"],
            sizes=[],
            tags=["silk", "luxury"],
            rating=4.8,
            popularity=156,
        ),
        build_product(
            "watch",
            name="Luxury Watch",
            price=1299,
            category="Accessories",
            colors=["Silver", "Gold"],
            sizes=[],
            tags=["luxury"],
            rating=4.9,
            inStock=False,
            quality=9.8,
        ),
    ]


@pytest.fixture
def standard_partner() -> DeliveryPartner:
    return DeliveryPartner(
        id="2",
        name="Standard Shipping",
        price=Decimal("8"),
        estimated_days="3-5 days",
        recommended=True,
    )


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def preferences(memory_store) -> PreferenceRepository:
    return PreferenceRepository(memory_store)


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    from storefront.main import app

    client = fakeredis.FakeRedis(decode_responses=True)
    app.dependency_overrides[get_redis_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_redis_client, None)


@pytest_asyncio.fixture()
async def client(redis_client):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from storefront.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client

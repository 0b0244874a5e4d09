"""API tests for per-session filters, wishlist and recently viewed products."""

from __future__ import annotations

import json

import pytest


@pytest.mark.asyncio
async def test_filters_default_to_full_catalog(client):
    response = await client.get("/sessions/new/filters")

    assert response.status_code == 200
    body = response.json()
    assert body["active_filters"] == 0
    assert body["filters"]["category"] == "All"
    assert body["filters"]["priceRange"] == [89, 1299]


@pytest.mark.asyncio
async def test_put_filters_persists_to_redis(client, redis_client):
    response = await client.put(
        "/sessions/s1/filters",
        json={
            "category": "Dresses",
            "priceRange": [0, 500],
            "colors": ["Black", "Emerald"],
            "sizes": [],
            "tags": ["silk"],
            "inStockOnly": False,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["filters"]["priceRange"] == [89, 500]
    assert sorted(body["filters"]["colors"]) == ["Black", "Emerald"]
    assert body["active_filters"] == 4

    stored = json.loads(await redis_client.get("storefront:filters:s1"))
    assert stored["category"] == "Dresses"
    assert stored["colors"] == ["Black", "Emerald"]

    reloaded = await client.get("/sessions/s1/filters")
    assert reloaded.json() == body


@pytest.mark.asyncio
async def test_crossed_price_range_resets_to_full_range(client):
    response = await client.put(
        "/sessions/s1/filters", json={"priceRange": [900, 100]}
    )

    assert response.json()["filters"]["priceRange"] == [89, 1299]


@pytest.mark.asyncio
async def test_corrupt_stored_filters_fall_back_to_defaults(client, redis_client):
    await redis_client.set("storefront:filters:s1", "{broken")

    response = await client.get("/sessions/s1/filters")

    assert response.status_code == 200
    assert response.json()["active_filters"] == 0


@pytest.mark.asyncio
async def test_delete_filters_resets(client):
    await client.put("/sessions/s1/filters", json={"tags": ["luxury"]})

    response = await client.delete("/sessions/s1/filters")

    assert response.json()["active_filters"] == 0
    assert response.json()["filters"]["tags"] == []


@pytest.mark.asyncio
async def test_wishlist_toggle(client):
    first = await client.post("/sessions/s1/wishlist/4")
    second = await client.post("/sessions/s1/wishlist/11")
    third = await client.post("/sessions/s1/wishlist/4")

    assert first.json()["product_ids"] == ["4"]
    assert second.json()["product_ids"] == ["11", "4"]
    assert third.json()["product_ids"] == ["11"]

    current = await client.get("/sessions/s1/wishlist")
    assert current.json()["product_ids"] == ["11"]


@pytest.mark.asyncio
async def test_wishlist_rejects_unknown_product(client):
    response = await client.post("/sessions/s1/wishlist/nope")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_recently_viewed_keeps_five_most_recent(client):
    for product_id in ["1", "2", "3", "4", "5", "6", "2"]:
        await client.post(f"/sessions/s1/recently-viewed/{product_id}")

    response = await client.get("/sessions/s1/recently-viewed")

    assert [p["id"] for p in response.json()["products"]] == ["2", "6", "5", "4", "3"]


@pytest.mark.asyncio
async def test_sessions_are_isolated(client):
    await client.post("/sessions/a/wishlist/1")

    response = await client.get("/sessions/b/wishlist")

    assert response.json()["product_ids"] == []

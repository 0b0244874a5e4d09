"""Routes for per-session filters, wishlist and recently viewed products."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from storefront.models.catalog import Product
from storefront.models.filters import FilterState, FilterStatePayload
from storefront.services.catalog import Catalog, CatalogDependency
from storefront.services.filtering.session import FilterSession
from storefront.services.storage.preferences import PreferencesDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions/{session_id}", tags=["preferences"])


class FilterStateResponse(BaseModel):
    """Current filters and how many facets they restrict."""

    filters: FilterState
    active_filters: int


class WishlistResponse(BaseModel):
    product_ids: list[str]


class RecentlyViewedResponse(BaseModel):
    products: list[Product]


def _filter_response(session: FilterSession) -> FilterStateResponse:
    return FilterStateResponse(
        filters=session.state,
        active_filters=session.active_filter_count,
    )


def _require_product(catalog: Catalog, product_id: str) -> Product:
    product = catalog.get(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown product {product_id}",
        )
    return product


@router.get("/filters", response_model=FilterStateResponse)
async def get_filters(
    session_id: str,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
) -> FilterStateResponse:
    session = await FilterSession.open(
        session_id, catalog.products, preferences, catalog.facets
    )
    return _filter_response(session)


@router.put("/filters", response_model=FilterStateResponse)
async def put_filters(
    session_id: str,
    payload: FilterStatePayload,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
) -> FilterStateResponse:
    """Replace the session's filters; the price range is clamped to the catalog."""
    session = await FilterSession.open(
        session_id, catalog.products, preferences, catalog.facets
    )
    price_range = payload.price_range
    if not price_range or len(price_range) != 2:
        price_range = [catalog.facets.min_price, catalog.facets.max_price]

    await session.update(
        category=payload.category,
        price_range=(price_range[0], price_range[1]),
        colors=payload.colors,
        sizes=payload.sizes,
        tags=payload.tags,
        in_stock_only=payload.in_stock_only,
    )
    logger.info(
        "Filters updated for session %s (%d active)",
        session_id,
        session.active_filter_count,
    )
    return _filter_response(session)


@router.delete("/filters", response_model=FilterStateResponse)
async def reset_filters(
    session_id: str,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
) -> FilterStateResponse:
    session = FilterSession(session_id, catalog.products, preferences, catalog.facets)
    await session.reset()
    return _filter_response(session)


@router.get("/wishlist", response_model=WishlistResponse)
async def get_wishlist(
    session_id: str,
    preferences: PreferencesDependency,
) -> WishlistResponse:
    wishlist = await preferences.load_wishlist(session_id)
    return WishlistResponse(product_ids=sorted(wishlist))


@router.post("/wishlist/{product_id}", response_model=WishlistResponse)
async def toggle_wishlist(
    session_id: str,
    product_id: str,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
) -> WishlistResponse:
    """Add the product to the wishlist, or remove it when already present."""
    _require_product(catalog, product_id)
    wishlist = await preferences.toggle_wishlist(session_id, product_id)
    return WishlistResponse(product_ids=sorted(wishlist))


@router.get("/recently-viewed", response_model=RecentlyViewedResponse)
async def get_recently_viewed(
    session_id: str,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
) -> RecentlyViewedResponse:
    product_ids = await preferences.load_recently_viewed(session_id)
    products = [p for p in (catalog.get(pid) for pid in product_ids) if p is not None]
    return RecentlyViewedResponse(products=products)


@router.post("/recently-viewed/{product_id}", response_model=RecentlyViewedResponse)
async def add_recently_viewed(
    session_id: str,
    product_id: str,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
) -> RecentlyViewedResponse:
    _require_product(catalog, product_id)
    product_ids = await preferences.add_recently_viewed(session_id, product_id)
    products = [p for p in (catalog.get(pid) for pid in product_ids) if p is not None]
    return RecentlyViewedResponse(products=products)

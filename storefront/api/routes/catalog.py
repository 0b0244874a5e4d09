"""Routes for browsing the catalog."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from storefront.models.catalog import DeliveryPartner, Facets, Product
from storefront.models.filters import DEFAULT_SORT_KEY, ProductListing, SortKey
from storefront.services.catalog import CatalogDependency, DeliveryPartnersDependency
from storefront.services.filtering.session import FilterSession
from storefront.services.storage.preferences import PreferencesDependency

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


@router.get(
    "/catalog/facets",
    response_model=Facets,
    summary="Filterable dimensions of the catalog",
)
async def get_facets(catalog: CatalogDependency) -> Facets:
    return catalog.facets


@router.get(
    "/catalog/products",
    response_model=ProductListing,
    summary="List products filtered by the session's saved filters",
)
async def list_products(
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
    session_id: str | None = None,
    q: str = "",
    sort: SortKey = DEFAULT_SORT_KEY,
) -> ProductListing:
    """Apply the session's persisted filters, the search text and the sort key.

    Without a session id the default (unrestricted) filters are used.
    """
    if session_id:
        session = await FilterSession.open(
            session_id, catalog.products, preferences, catalog.facets
        )
    else:
        session = FilterSession("anonymous", catalog.products, preferences, catalog.facets)

    listing = session.results(search_query=q, sort_key=sort)
    logger.info(
        "Catalog listing computed",
        extra={
            "session_id": session_id,
            "total": listing.total,
            "active_filters": listing.active_filters,
        },
    )
    return listing


@router.get(
    "/catalog/products/{product_id}",
    response_model=Product,
    summary="Fetch a single product",
)
async def get_product(
    product_id: str,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
    session_id: str | None = Query(None, description="Record the view for this session"),
) -> Product:
    product = catalog.get(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown product {product_id}",
        )
    if session_id:
        await preferences.add_recently_viewed(session_id, product_id)
    return product


@router.get(
    "/delivery-partners",
    response_model=list[DeliveryPartner],
    summary="Available shipping options",
)
async def list_delivery_partners(
    partners: DeliveryPartnersDependency,
) -> list[DeliveryPartner]:
    return partners

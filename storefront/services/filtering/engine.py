"""Pure filtering, sorting and facet derivation over an in-memory catalog."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable, Sequence
from decimal import Decimal

from pydantic import ValidationError

from storefront.models.catalog import Facets, Product
from storefront.models.filters import (
    ALL_CATEGORIES,
    DEFAULT_SORT_KEY,
    FilterState,
    FilterStatePayload,
    FilterView,
    SortKey,
)

logger = logging.getLogger(__name__)


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def derive_facets(catalog: Sequence[Product]) -> Facets:
    """Compute price bounds and distinct facet values for a catalog.

    An empty catalog yields min_price == max_price == 0 and no facet values
    besides the "All" category sentinel.
    """
    if not catalog:
        return Facets(
            min_price=0,
            max_price=0,
            categories=[ALL_CATEGORIES],
            colors=[],
            sizes=[],
            tags=[],
        )

    prices = [product.price for product in catalog]
    return Facets(
        min_price=math.floor(min(prices)),
        max_price=math.ceil(max(prices)),
        categories=_unique([ALL_CATEGORIES, *(p.category for p in catalog)]),
        colors=_unique(c.name for p in catalog for c in p.colors),
        sizes=_unique(s.name for p in catalog for s in p.sizes),
        tags=_unique(t for p in catalog for t in p.tags),
    )


def default_filter_state(min_price: float, max_price: float) -> FilterState:
    return FilterState(price_range=(min_price, max_price))


def clamp_price_range(
    low: float,
    high: float,
    min_price: float,
    max_price: float,
) -> tuple[float, float]:
    """Clamp both bounds into the catalog range.

    Crossed or non-finite bounds reset to the full range.
    """
    if not (math.isfinite(low) and math.isfinite(high)):
        return (min_price, max_price)
    low = min(max(low, min_price), max_price)
    high = min(max(high, min_price), max_price)
    if low > high:
        return (min_price, max_price)
    return (low, high)


def load_initial_filter_state(
    persisted: str | None,
    min_price: float,
    max_price: float,
) -> FilterState:
    """Rebuild the filter state from its stored JSON form.

    Missing, unparseable or structurally invalid data falls back to the
    default state. A stored price range is revalidated against the current
    catalog bounds.
    """
    if not persisted:
        return default_filter_state(min_price, max_price)

    try:
        raw = json.loads(persisted)
        payload = FilterStatePayload.model_validate(raw)
    except (ValueError, TypeError, ValidationError) as exc:
        logger.warning("Failed to parse persisted filter state: %s", exc)
        return default_filter_state(min_price, max_price)

    price_range = payload.price_range
    if not price_range or len(price_range) != 2:
        price_range = [min_price, max_price]

    return FilterState(
        category=payload.category,
        price_range=clamp_price_range(price_range[0], price_range[1], min_price, max_price),
        colors=frozenset(payload.colors),
        sizes=frozenset(payload.sizes),
        tags=frozenset(payload.tags),
        in_stock_only=payload.in_stock_only,
    )


def apply_filters(
    catalog: Sequence[Product],
    state: FilterState,
    search_query: str = "",
) -> list[Product]:
    """Return the catalog products that pass every active filter."""
    products = list(catalog)

    query = search_query.lower()
    if query:
        products = [p for p in products if query in p.name.lower()]

    if state.category != ALL_CATEGORIES:
        products = [p for p in products if p.category == state.category]

    # bounds compared as Decimals, like product prices
    low, high = (Decimal(str(bound)) for bound in state.price_range)
    products = [p for p in products if low <= p.price <= high]

    if state.colors:
        products = [
            p for p in products if any(c.name in state.colors for c in p.colors)
        ]

    if state.sizes:
        products = [
            p for p in products if any(s.name in state.sizes for s in p.sizes)
        ]

    if state.tags:
        products = [p for p in products if any(t in state.tags for t in p.tags)]

    if state.in_stock_only:
        products = [p for p in products if p.in_stock]

    return products


def sort_products(products: Sequence[Product], sort_key: SortKey | str) -> list[Product]:
    """Stable sort of products for the requested ordering."""
    key = SortKey(sort_key)

    if key is SortKey.RATING:
        return sorted(products, key=lambda p: p.rating, reverse=True)
    if key is SortKey.QUALITY:
        return sorted(products, key=lambda p: p.quality or 0, reverse=True)
    if key is SortKey.PRICE_LOW:
        return sorted(products, key=lambda p: p.price)
    if key is SortKey.PRICE_HIGH:
        return sorted(products, key=lambda p: p.price, reverse=True)
    if key is SortKey.POPULAR:
        return sorted(products, key=lambda p: p.popularity or 0, reverse=True)
    if key is SortKey.DISCOUNT:
        return sorted(products, key=lambda p: p.discount_fraction, reverse=True)
    return sorted(products, key=lambda p: p.name.casefold())


def count_active_filters(state: FilterState, min_price: float, max_price: float) -> int:
    """Number of facets currently restricting the listing."""
    low, high = state.price_range
    return sum(
        (
            state.category != ALL_CATEGORIES,
            low != min_price or high != max_price,
            bool(state.colors),
            bool(state.sizes),
            bool(state.tags),
            state.in_stock_only,
        )
    )


def reset_filters(min_price: float, max_price: float) -> FilterView:
    return FilterView(
        filters=default_filter_state(min_price, max_price),
        search_query="",
        sort_key=DEFAULT_SORT_KEY,
    )

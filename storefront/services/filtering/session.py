"""Filter state bound to a shopper session and its persisted preferences."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from storefront.models.catalog import Facets, Product
from storefront.models.filters import (
    DEFAULT_SORT_KEY,
    FilterState,
    ProductListing,
    SortKey,
)
from storefront.services.filtering.engine import (
    apply_filters,
    clamp_price_range,
    count_active_filters,
    derive_facets,
    load_initial_filter_state,
    reset_filters,
    sort_products,
)
from storefront.services.storage.preferences import PreferenceRepository

logger = logging.getLogger(__name__)


class FilterSession:
    """Holds the filter, search and sort selection for one session.

    Every filter change is written back through the preference repository
    before the call returns. Listing results are recomputed from the current
    inputs on each call.
    """

    def __init__(
        self,
        session_id: str,
        catalog: Sequence[Product],
        preferences: PreferenceRepository,
        facets: Facets | None = None,
    ) -> None:
        self.session_id = session_id
        self._catalog = catalog
        self._preferences = preferences
        self.facets = facets or derive_facets(catalog)
        self.state = FilterState(
            price_range=(self.facets.min_price, self.facets.max_price)
        )
        self.search_query = ""
        self.sort_key = DEFAULT_SORT_KEY

    @classmethod
    async def open(
        cls,
        session_id: str,
        catalog: Sequence[Product],
        preferences: PreferenceRepository,
        facets: Facets | None = None,
    ) -> FilterSession:
        """Create a session with its filters restored from storage."""
        session = cls(session_id, catalog, preferences, facets)
        persisted = await preferences.load_filters_raw(session_id)
        session.state = load_initial_filter_state(
            persisted,
            session.facets.min_price,
            session.facets.max_price,
        )
        return session

    @property
    def active_filter_count(self) -> int:
        return count_active_filters(
            self.state, self.facets.min_price, self.facets.max_price
        )

    async def update(self, **changes: Any) -> FilterState:
        """Apply field changes to the filter state and persist the result."""
        if "price_range" in changes:
            low, high = changes["price_range"]
            changes["price_range"] = clamp_price_range(
                low, high, self.facets.min_price, self.facets.max_price
            )
        for facet in ("colors", "sizes", "tags"):
            if facet in changes:
                changes[facet] = frozenset(changes[facet] or ())

        self.state = self.state.model_copy(update=changes)
        await self._persist()
        return self.state

    async def reset(self) -> FilterState:
        view = reset_filters(self.facets.min_price, self.facets.max_price)
        self.state = view.filters
        self.search_query = view.search_query
        self.sort_key = view.sort_key
        await self._persist()
        return self.state

    def results(
        self,
        search_query: str | None = None,
        sort_key: SortKey | str | None = None,
    ) -> ProductListing:
        if search_query is not None:
            self.search_query = search_query
        if sort_key is not None:
            self.sort_key = SortKey(sort_key)

        products = sort_products(
            apply_filters(self._catalog, self.state, self.search_query),
            self.sort_key,
        )
        return ProductListing(
            products=products,
            total=len(products),
            active_filters=self.active_filter_count,
            sort_key=self.sort_key,
            search_query=self.search_query,
        )

    async def _persist(self) -> None:
        saved = await self._preferences.save_filters(self.session_id, self.state)
        if saved:
            logger.debug("Persisted filters for session %s", self.session_id)

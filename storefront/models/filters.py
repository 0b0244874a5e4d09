"""Filter and sort state for catalog browsing."""

from __future__ import annotations

import json
from enum import StrEnum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    FiniteFloat,
    field_serializer,
    field_validator,
)

from storefront.models.catalog import Product

ALL_CATEGORIES = "All"


class SortKey(StrEnum):
    """Orderings offered by the catalog listing."""

    RATING = "rating"
    QUALITY = "quality"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    POPULAR = "popular"
    DISCOUNT = "discount"
    NAME = "name"


DEFAULT_SORT_KEY = SortKey.RATING


class FilterState(BaseModel):
    """User-selected filter criteria.

    An empty facet selection means the facet does not restrict the listing.
    Serialized with the camelCase keys used by persisted client state.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: str = ALL_CATEGORIES
    price_range: tuple[FiniteFloat, FiniteFloat] = Field(..., alias="priceRange")
    colors: frozenset[str] = frozenset()
    sizes: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()
    in_stock_only: bool = Field(False, alias="inStockOnly")

    @field_validator("colors", "sizes", "tags", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return frozenset() if value is None else value

    @field_serializer("colors", "sizes", "tags")
    def _sorted_selection(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    def to_storage(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True))


class FilterStatePayload(BaseModel):
    """Wire shape of a filter state, used for API bodies and storage."""

    model_config = ConfigDict(populate_by_name=True)

    category: str = ALL_CATEGORIES
    price_range: list[FiniteFloat] | None = Field(None, alias="priceRange")
    colors: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    in_stock_only: bool = Field(False, alias="inStockOnly")


class FilterView(BaseModel):
    """Filter state together with the free-text search and sort selection."""

    filters: FilterState
    search_query: str = ""
    sort_key: SortKey = DEFAULT_SORT_KEY


class ProductListing(BaseModel):
    """Filtered and sorted products returned by the catalog listing."""

    products: list[Product]
    total: int
    active_filters: int
    sort_key: SortKey
    search_query: str = ""

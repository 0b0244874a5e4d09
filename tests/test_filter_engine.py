"""Tests for facet derivation, filtering, sorting and filter state loading."""

from __future__ import annotations

import json
import math
from decimal import Decimal

import pytest

from storefront.models.filters import FilterState, SortKey
from storefront.services.filtering.engine import (
    apply_filters,
    clamp_price_range,
    count_active_filters,
    default_filter_state,
    derive_facets,
    load_initial_filter_state,
    reset_filters,
    sort_products,
)


def _ids(products):
    return [p.id for p in products]


def test_derive_facets_collects_distinct_values(sample_catalog):
    facets = derive_facets(sample_catalog)

    assert facets.min_price == 89
    assert facets.max_price == 1299
    assert facets.categories == ["All", "Outerwear", "Dresses", "Accessories"]
    assert facets.colors == ["Camel", "Black", "Emerald", "Coral Pink", "Silver", "Gold"]
    assert facets.sizes == ["S", "M", "L", "XS"]
    assert facets.tags == ["luxury", "winter", "silk", "evening"]


def test_derive_facets_floors_and_ceils_prices(make_product):
    facets = derive_facets(
        [make_product("a", price=10.75), make_product("b", price=20.10)]
    )

    assert facets.min_price == 10
    assert facets.max_price == 21


def test_derive_facets_on_empty_catalog_returns_sentinel():
    facets = derive_facets([])

    assert facets.min_price == 0
    assert facets.max_price == 0
    assert facets.categories == ["All"]
    assert facets.colors == facets.sizes == facets.tags == []


def test_default_state_is_identity(sample_catalog):
    facets = derive_facets(sample_catalog)
    state = default_filter_state(facets.min_price, facets.max_price)

    assert apply_filters(sample_catalog, state, "") == sample_catalog


def test_apply_filters_returns_new_list(sample_catalog):
    state = default_filter_state(0, 5000)
    result = apply_filters(sample_catalog, state)

    assert result is not sample_catalog
    result.clear()
    assert len(sample_catalog) == 4


def test_search_is_case_insensitive_substring(sample_catalog):
    state = default_filter_state(0, 5000)

    result = apply_filters(sample_catalog, state, "SILK")

    assert _ids(result) == ["dress", "scarf"]
    assert all("silk" in p.name.lower() for p in result)


def test_category_filter(sample_catalog):
    state = FilterState(category="Accessories", price_range=(0, 5000))

    assert _ids(apply_filters(sample_catalog, state)) == ["scarf", "watch"]


def test_price_range_is_inclusive(sample_catalog):
    state = FilterState(price_range=(89, 449))

    assert _ids(apply_filters(sample_catalog, state)) == ["dress", "scarf"]


def test_price_bounds_with_cents_are_inclusive(make_product):
    products = [
        make_product("a", price=Decimal("49.99")),
        make_product("b", price=Decimal("19.99")),
    ]

    assert _ids(apply_filters(products, FilterState(price_range=(49.99, 100)))) == ["a"]
    assert _ids(apply_filters(products, FilterState(price_range=(0, 19.99)))) == ["b"]
    assert _ids(apply_filters(products, FilterState(price_range=(19.99, 49.99)))) == [
        "a",
        "b",
    ]


@pytest.mark.parametrize(
    "low,high",
    [(math.nan, math.nan), (math.nan, 50), (10, math.inf), (-math.inf, 50)],
)
def test_clamp_price_range_resets_non_finite_bounds(low, high):
    assert clamp_price_range(low, high, 10, 100) == (10, 100)


def test_filter_state_rejects_non_finite_bounds():
    with pytest.raises(ValueError):
        FilterState(price_range=(math.nan, 100))


def test_empty_facet_selection_passes_everything(sample_catalog):
    state = FilterState(price_range=(0, 5000), colors=[], sizes=[], tags=[])

    assert len(apply_filters(sample_catalog, state)) == len(sample_catalog)


def test_color_filter_matches_any_selected(sample_catalog):
    state = FilterState(price_range=(0, 5000), colors={"Gold", "Emerald"})

    assert _ids(apply_filters(sample_catalog, state)) == ["dress", "watch"]


def test_size_filter_excludes_one_size_products(sample_catalog):
    state = FilterState(price_range=(0, 5000), sizes={"S"})

    assert _ids(apply_filters(sample_catalog, state)) == ["coat", "dress"]


def test_tag_and_stock_filters_combine(sample_catalog):
    state = FilterState(price_range=(0, 5000), tags={"luxury"}, in_stock_only=True)

    assert _ids(apply_filters(sample_catalog, state)) == ["coat", "scarf"]


def test_filtered_results_are_subset_without_duplicates(sample_catalog):
    state = FilterState(price_range=(0, 1000), tags={"silk", "luxury"})
    result = apply_filters(sample_catalog, state)

    assert len(set(_ids(result))) == len(result)
    assert all(p in sample_catalog for p in result)


def test_sort_by_rating_is_stable(sample_catalog):
    result = sort_products(sample_catalog, SortKey.RATING)

    # coat and scarf tie on 4.8 and keep their catalog order
    assert _ids(result) == ["watch", "coat", "scarf", "dress"]
    assert sort_products(result, SortKey.RATING) == result


def test_sort_by_price(sample_catalog):
    low = sort_products(sample_catalog, "price-low")
    high = sort_products(sample_catalog, "price-high")

    assert _ids(low) == ["scarf", "dress", "coat", "watch"]
    assert list(reversed(low)) == high


def test_sort_by_quality_and_popularity_treat_missing_as_zero(sample_catalog):
    assert _ids(sort_products(sample_catalog, "quality")) == [
        "watch",
        "coat",
        "dress",
        "scarf",
    ]
    assert _ids(sort_products(sample_catalog, "popular")) == [
        "coat",
        "dress",
        "scarf",
        "watch",
    ]


def test_sort_by_discount(sample_catalog):
    result = sort_products(sample_catalog, SortKey.DISCOUNT)

    # scarf 40/129 beats coat 399.5/1299; unsold items tie at zero
    assert _ids(result) == ["scarf", "coat", "dress", "watch"]


def test_sort_by_name(sample_catalog):
    result = sort_products(sample_catalog, SortKey.NAME)

    assert _ids(result) == ["coat", "watch", "dress", "scarf"]


def test_sort_by_name_folds_case(make_product):
    products = [
        make_product("b", name="Banana Bag"),
        make_product("c", name="cherry Coat"),
        make_product("a", name="apple Scarf"),
    ]

    assert _ids(sort_products(products, SortKey.NAME)) == ["a", "b", "c"]


def test_sort_rejects_unknown_key(sample_catalog):
    with pytest.raises(ValueError):
        sort_products(sample_catalog, "newest")


def test_count_active_filters_counts_each_facet_once():
    state = default_filter_state(10, 100)
    assert count_active_filters(state, 10, 100) == 0

    state = state.model_copy(update={"colors": frozenset({"Black", "Navy", "Camel"})})
    assert count_active_filters(state, 10, 100) == 1

    state = state.model_copy(update={"category": "Dresses"})
    assert count_active_filters(state, 10, 100) == 2

    state = state.model_copy(update={"price_range": (20, 100)})
    assert count_active_filters(state, 10, 100) == 3

    state = state.model_copy(
        update={
            "sizes": frozenset({"S"}),
            "tags": frozenset({"silk", "evening"}),
            "in_stock_only": True,
        }
    )
    assert count_active_filters(state, 10, 100) == 6


def test_reset_filters_restores_defaults():
    view = reset_filters(10, 100)

    assert view.filters == default_filter_state(10, 100)
    assert view.search_query == ""
    assert view.sort_key is SortKey.RATING


class TestLoadInitialFilterState:
    def test_missing_value_gives_default(self):
        assert load_initial_filter_state(None, 10, 100) == default_filter_state(10, 100)

    @pytest.mark.parametrize(
        "persisted",
        ["{not json", "null", "[1, 2]", '{"colors": "Black"}', '{"priceRange": ["a", "b"]}'],
    )
    def test_malformed_value_gives_default(self, persisted):
        assert load_initial_filter_state(persisted, 10, 100) == default_filter_state(
            10, 100
        )

    def test_round_trip(self):
        state = FilterState(
            category="Dresses",
            price_range=(20, 80),
            colors={"Black"},
            sizes={"M", "L"},
            tags={"silk"},
            in_stock_only=True,
        )

        assert load_initial_filter_state(state.to_storage(), 10, 100) == state

    def test_stored_keys_use_client_names(self):
        stored = json.loads(default_filter_state(10, 100).to_storage())

        assert stored == {
            "category": "All",
            "priceRange": [10.0, 100.0],
            "colors": [],
            "sizes": [],
            "tags": [],
            "inStockOnly": False,
        }

    @pytest.mark.parametrize(
        "persisted",
        [
            '{"priceRange": [NaN, NaN]}',
            '{"priceRange": [NaN, 50]}',
            '{"priceRange": [20, Infinity]}',
        ],
    )
    def test_non_finite_price_range_gives_full_range(self, persisted):
        state = load_initial_filter_state(persisted, 0, 500)

        assert state.price_range == (0, 500)
        assert count_active_filters(state, 0, 500) == 0

    @pytest.mark.parametrize("price_range", [None, [], [50], [10, 50, 90]])
    def test_bad_price_range_is_replaced(self, price_range):
        persisted = json.dumps({"category": "Dresses", "priceRange": price_range})

        state = load_initial_filter_state(persisted, 10, 100)

        assert state.category == "Dresses"
        assert state.price_range == (10, 100)

    def test_out_of_bounds_price_range_is_clamped(self):
        persisted = json.dumps({"priceRange": [0, 5000]})

        assert load_initial_filter_state(persisted, 10, 100).price_range == (10, 100)

    def test_partially_out_of_bounds_range_keeps_valid_bound(self):
        persisted = json.dumps({"priceRange": [40, 5000]})

        assert load_initial_filter_state(persisted, 10, 100).price_range == (40, 100)

"""Static catalog and delivery partner tables."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

from fastapi import Depends
from pydantic import TypeAdapter

from storefront.config import settings
from storefront.models.catalog import DeliveryPartner, Facets, Product
from storefront.services.filtering.engine import derive_facets

logger = logging.getLogger(__name__)

_products_adapter = TypeAdapter(list[Product])
_partners_adapter = TypeAdapter(list[DeliveryPartner])


def load_catalog(path: str | Path) -> list[Product]:
    """Parse a JSON array of raw product records into normalized products."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    products = _products_adapter.validate_python(raw)
    logger.info("Loaded %d products from %s", len(products), path)
    return products


def load_delivery_partners(path: str | Path) -> list[DeliveryPartner]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return _partners_adapter.validate_python(raw)


def default_delivery_partner(partners: Sequence[DeliveryPartner]) -> DeliveryPartner:
    """The partner flagged as recommended, otherwise the cheapest one."""
    if not partners:
        raise ValueError("No delivery partners configured")
    for partner in partners:
        if partner.recommended:
            return partner
    return min(partners, key=lambda partner: partner.price)


def find_delivery_partner(
    partners: Sequence[DeliveryPartner],
    partner_id: str | None,
) -> DeliveryPartner | None:
    if partner_id is None:
        return default_delivery_partner(partners)
    for partner in partners:
        if partner.id == partner_id:
            return partner
    return None


class Catalog:
    """Immutable product table with precomputed facets."""

    def __init__(self, products: Sequence[Product]) -> None:
        self.products: tuple[Product, ...] = tuple(products)
        self.facets: Facets = derive_facets(self.products)
        self._by_id = {product.id: product for product in self.products}

    def get(self, product_id: str) -> Product | None:
        return self._by_id.get(product_id)

    def __len__(self) -> int:
        return len(self.products)


_catalog: Catalog | None = None
_delivery_partners: list[DeliveryPartner] | None = None


def get_catalog() -> Catalog:
    """FastAPI dependency returning the catalog loaded once per process."""

    global _catalog
    if _catalog is None:
        _catalog = Catalog(load_catalog(settings.CATALOG_PATH))
    return _catalog


def get_delivery_partners() -> list[DeliveryPartner]:
    """FastAPI dependency returning the delivery partner table."""

    global _delivery_partners
    if _delivery_partners is None:
        _delivery_partners = load_delivery_partners(settings.DELIVERY_PARTNERS_PATH)
    return _delivery_partners


CatalogDependency = Annotated[Catalog, Depends(get_catalog)]
DeliveryPartnersDependency = Annotated[
    list[DeliveryPartner], Depends(get_delivery_partners)
]

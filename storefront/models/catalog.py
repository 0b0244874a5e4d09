"""Catalog domain models and the adapter for raw product records."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


class Color(BaseModel):
    """A color option offered for a product."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    value: str = Field(..., description="Swatch value, usually a hex code")


class Size(BaseModel):
    """A size option offered for a product."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    value: str
    in_stock: bool = Field(
        True,
        validation_alias=AliasChoices("in_stock", "inStock"),
    )


class Product(BaseModel):
    """Normalized catalog entry.

    Raw records coming from the catalog file are loose: colors and sizes can
    be plain strings or objects, and several fields use camelCase names. The
    validators below fold every shape into one internal representation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)
    name: str
    price: Decimal = Field(..., gt=0)
    original_price: Decimal | None = Field(
        None,
        validation_alias=AliasChoices("original_price", "originalPrice"),
    )
    category: str
    colors: list[Color] = Field(..., min_length=1)
    sizes: list[Size] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sizes", "availableSizes"),
    )
    tags: list[str] = Field(default_factory=list)
    rating: float = Field(0.0, ge=0, le=5)
    review_count: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("review_count", "reviews", "reviewCount"),
    )
    in_stock: bool = Field(
        True,
        validation_alias=AliasChoices("in_stock", "inStock"),
    )
    quality: float | None = None
    popularity: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("colors", mode="before")
    @classmethod
    def _coerce_colors(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            {"name": item, "value": item} if isinstance(item, str) else item
            for item in value
        ]

    @field_validator("sizes", mode="before")
    @classmethod
    def _coerce_sizes(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        return [
            {"name": item, "value": item.lower(), "in_stock": True}
            if isinstance(item, str)
            else item
            for item in value
        ]

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_original_price(self) -> Product:
        if self.original_price is not None and self.original_price <= self.price:
            raise ValueError("original_price must be greater than price")
        return self

    @property
    def discount_fraction(self) -> float:
        """Markdown from the original price, 0 when the product is not on sale."""
        if not self.original_price:
            return 0.0
        return float((self.original_price - self.price) / self.original_price)

    def find_color(self, value_or_name: str) -> Color | None:
        for color in self.colors:
            if value_or_name in (color.value, color.name):
                return color
        return None

    def find_size(self, value_or_name: str) -> Size | None:
        for size in self.sizes:
            if value_or_name in (size.value, size.name):
                return size
        return None


class DeliveryPartner(BaseModel):
    """A shipping option selectable at checkout."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str
    price: Decimal = Field(..., ge=0)
    estimated_days: str = Field(
        ...,
        validation_alias=AliasChoices("estimated_days", "estimatedDays"),
    )
    recommended: bool = False
    logo: str | None = None
    features: list[str] = Field(default_factory=list)


class Facets(BaseModel):
    """Filterable dimensions derived from a catalog."""

    min_price: int
    max_price: int
    categories: list[str]
    colors: list[str]
    sizes: list[str]
    tags: list[str]

"""Cart and order summary models."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.catalog import Color, DeliveryPartner, Product, Size
from storefront.models.discount import ReferralDiscount

ONE_SIZE = "one-size"


def build_line_id(product_id: str, color: Color, size: Size | None) -> str:
    """Stable identity for a (product, color, size) selection."""
    size_value = size.value if size is not None else ONE_SIZE
    return f"{product_id}-{color.value}-{size_value}"


class CartLineItem(BaseModel):
    """One distinct product selection with a quantity."""

    model_config = ConfigDict(frozen=True)

    id: str
    product: Product
    selected_color: Color
    selected_size: Size | None = None
    quantity: int = Field(1, ge=1)

    def matches(self, product_id: str, color: Color, size: Size | None) -> bool:
        return self.id == build_line_id(product_id, color, size)


class Cart(BaseModel):
    """Ordered collection of line items."""

    model_config = ConfigDict(frozen=True)

    lines: tuple[CartLineItem, ...] = ()

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def get_line(self, line_id: str) -> CartLineItem | None:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None


class LinePricing(BaseModel):
    """Priced view of a single cart line."""

    line_id: str
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    effective_price: Decimal
    line_total: Decimal
    savings: Decimal
    applied_discount: ReferralDiscount | None = None


class OrderSummary(BaseModel):
    """Derived totals for a cart and a delivery partner."""

    lines: list[LinePricing] = Field(default_factory=list)
    item_count: int = 0
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal
    savings: Decimal = Decimal("0.00")
    delivery_partner: DeliveryPartner


class CartView(BaseModel):
    """API representation of a cart."""

    session_id: str
    lines: list[CartLineItem]
    item_count: int


class AddLineRequest(BaseModel):
    """Body for adding a product selection to a cart."""

    product_id: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1, description="Color value or name")
    size: str | None = Field(None, description="Size value or name")
    quantity: int = 1


class UpdateQuantityRequest(BaseModel):
    """Body for the quantity stepper."""

    quantity: int


class SummaryRequest(BaseModel):
    """Body for pricing a cart."""

    delivery_partner_id: str | None = None
    discounts: list[ReferralDiscount] = Field(default_factory=list)

"""Cart mutations, referral discounts and order totals."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

from storefront.config import settings
from storefront.models.cart import (
    Cart,
    CartLineItem,
    LinePricing,
    OrderSummary,
    build_line_id,
)
from storefront.models.catalog import Color, DeliveryPartner, Product, Size
from storefront.models.discount import DiscountResult, ReferralDiscount
from storefront.services.pricing.money import (
    from_cents,
    percent_of_cents,
    round_money,
    to_cents,
)

logger = logging.getLogger(__name__)

_TYPE_PRIORITY = {"referrer": 1, "referred": 0}
_OLDEST = datetime.min.replace(tzinfo=UTC)


# Cart mutations


def add_line(
    cart: Cart,
    product: Product,
    color: Color,
    size: Size | None = None,
    quantity: int = 1,
) -> Cart:
    """Merge into the line with the same product, color and size, or append."""
    quantity = max(1, quantity)
    line_id = build_line_id(product.id, color, size)

    existing = cart.get_line(line_id)
    if existing is None:
        line = CartLineItem(
            id=line_id,
            product=product,
            selected_color=color,
            selected_size=size,
            quantity=quantity,
        )
        return Cart(lines=(*cart.lines, line))

    merged = existing.model_copy(update={"quantity": existing.quantity + quantity})
    return Cart(
        lines=tuple(merged if line.id == line_id else line for line in cart.lines)
    )


def update_quantity(cart: Cart, line_id: str, quantity: int) -> Cart:
    """Set a line's quantity, never going below one."""
    quantity = max(1, quantity)
    return Cart(
        lines=tuple(
            line.model_copy(update={"quantity": quantity}) if line.id == line_id else line
            for line in cart.lines
        )
    )


def remove_line(cart: Cart, line_id: str) -> Cart:
    return Cart(lines=tuple(line for line in cart.lines if line.id != line_id))


def clear_cart() -> Cart:
    return Cart()


# Discounts


def _as_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def qualifying_discounts(
    discounts: Sequence[ReferralDiscount],
    now: datetime | None = None,
) -> list[ReferralDiscount]:
    """Active, unused discounts that have not expired."""
    now = _as_aware(now or datetime.now(UTC))
    return [
        discount
        for discount in discounts
        if discount.is_active
        and not discount.used
        and (discount.expires_at is None or _as_aware(discount.expires_at) > now)
    ]


def select_discount(
    discounts: Sequence[ReferralDiscount],
    now: datetime | None = None,
) -> ReferralDiscount | None:
    """Pick exactly one qualifying discount.

    Referrer discounts beat referred ones, then the higher percentage wins,
    then the most recently created.
    """
    candidates = qualifying_discounts(discounts, now)
    if not candidates:
        return None
    return max(
        candidates,
        key=lambda d: (
            _TYPE_PRIORITY[d.type],
            d.percentage,
            _as_aware(d.created_at) if d.created_at else _OLDEST,
        ),
    )


def calculate_discounted_price(
    unit_price: Decimal | int | float,
    discounts: Sequence[ReferralDiscount],
    now: datetime | None = None,
) -> DiscountResult:
    price = round_money(unit_price)
    discount = select_discount(discounts, now)
    if discount is None:
        return DiscountResult(discounted_price=price, applied_discount=None)

    discounted = round_money(price * (1 - discount.percentage / 100))
    return DiscountResult(
        discounted_price=max(Decimal("0.00"), discounted),
        applied_discount=discount,
    )


# Order totals


def price_line(
    line: CartLineItem,
    discounts: Sequence[ReferralDiscount] = (),
    now: datetime | None = None,
) -> LinePricing:
    result = calculate_discounted_price(line.product.price, discounts, now)
    unit_cents = to_cents(line.product.price)
    effective_cents = to_cents(result.discounted_price)
    return LinePricing(
        line_id=line.id,
        product_id=line.product.id,
        name=line.product.name,
        quantity=line.quantity,
        unit_price=from_cents(unit_cents),
        effective_price=from_cents(effective_cents),
        line_total=from_cents(effective_cents * line.quantity),
        savings=from_cents((unit_cents - effective_cents) * line.quantity),
        applied_discount=result.applied_discount,
    )


def compute_order_summary(
    cart: Cart,
    delivery_partner: DeliveryPartner,
    discounts: Sequence[ReferralDiscount] = (),
    now: datetime | None = None,
    tax_rate: Decimal | None = None,
) -> OrderSummary:
    """Subtotal, delivery, tax and grand total, accumulated in whole cents."""
    rate = settings.TAX_RATE if tax_rate is None else tax_rate
    lines = [price_line(line, discounts, now) for line in cart.lines]

    subtotal_cents = sum(to_cents(line.line_total) for line in lines)
    savings_cents = sum(to_cents(line.savings) for line in lines)
    delivery_cents = to_cents(delivery_partner.price)
    tax_cents = percent_of_cents(subtotal_cents, rate)
    total_cents = subtotal_cents + delivery_cents + tax_cents

    if cart.is_empty:
        logger.debug("Computing order summary for an empty cart")

    return OrderSummary(
        lines=lines,
        item_count=cart.item_count,
        subtotal=from_cents(subtotal_cents),
        delivery_fee=from_cents(delivery_cents),
        tax=from_cents(tax_cents),
        total=from_cents(total_cents),
        savings=from_cents(savings_cents),
        delivery_partner=delivery_partner,
    )

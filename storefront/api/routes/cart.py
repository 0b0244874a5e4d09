"""Routes for the shopping cart and order summary."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from storefront.models.cart import (
    AddLineRequest,
    Cart,
    CartView,
    OrderSummary,
    SummaryRequest,
    UpdateQuantityRequest,
)
from storefront.services.catalog import (
    CatalogDependency,
    DeliveryPartnersDependency,
    find_delivery_partner,
)
from storefront.services.pricing.engine import (
    add_line,
    clear_cart,
    compute_order_summary,
    remove_line,
    update_quantity,
)
from storefront.services.storage.preferences import PreferencesDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart/{session_id}", tags=["cart"])


def _view(session_id: str, cart: Cart) -> CartView:
    return CartView(
        session_id=session_id, lines=list(cart.lines), item_count=cart.item_count
    )


@router.get("", response_model=CartView, summary="Fetch the session's cart")
async def get_cart(session_id: str, preferences: PreferencesDependency) -> CartView:
    return _view(session_id, await preferences.load_cart(session_id))


@router.post(
    "/lines",
    response_model=CartView,
    status_code=status.HTTP_201_CREATED,
    summary="Add a product selection to the cart",
)
async def add_cart_line(
    session_id: str,
    payload: AddLineRequest,
    catalog: CatalogDependency,
    preferences: PreferencesDependency,
) -> CartView:
    """Merge into an existing line with the same color and size, or append one."""
    product = catalog.get(payload.product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown product {payload.product_id}",
        )

    color = product.find_color(payload.color)
    if color is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Color {payload.color} is not offered for product {product.id}",
        )

    size = None
    if product.sizes:
        if payload.size is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"A size is required for product {product.id}",
            )
        size = product.find_size(payload.size)
        if size is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Size {payload.size} is not offered for product {product.id}",
            )

    cart = await preferences.update_cart(
        session_id,
        lambda current: add_line(current, product, color, size, payload.quantity),
    )
    logger.info(
        "Added product %s to cart of session %s (items=%d)",
        product.id,
        session_id,
        cart.item_count,
    )
    return _view(session_id, cart)


@router.patch(
    "/lines/{line_id}",
    response_model=CartView,
    summary="Change the quantity of a cart line",
)
async def update_cart_line(
    session_id: str,
    line_id: str,
    payload: UpdateQuantityRequest,
    preferences: PreferencesDependency,
) -> CartView:
    cart = await preferences.load_cart(session_id)
    if cart.get_line(line_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown cart line {line_id}",
        )
    cart = await preferences.update_cart(
        session_id,
        lambda current: update_quantity(current, line_id, payload.quantity),
    )
    return _view(session_id, cart)


@router.delete(
    "/lines/{line_id}",
    response_model=CartView,
    summary="Remove a line from the cart",
)
async def delete_cart_line(
    session_id: str,
    line_id: str,
    preferences: PreferencesDependency,
) -> CartView:
    cart = await preferences.update_cart(
        session_id, lambda current: remove_line(current, line_id)
    )
    return _view(session_id, cart)


@router.delete("", response_model=CartView, summary="Empty the cart")
async def delete_cart(session_id: str, preferences: PreferencesDependency) -> CartView:
    cart = clear_cart()
    await preferences.save_cart(session_id, cart)
    return _view(session_id, cart)


@router.post(
    "/summary",
    response_model=OrderSummary,
    summary="Price the cart for a delivery partner and referral discounts",
)
async def summarize_cart(
    session_id: str,
    payload: SummaryRequest,
    partners: DeliveryPartnersDependency,
    preferences: PreferencesDependency,
) -> OrderSummary:
    try:
        partner = find_delivery_partner(partners, payload.delivery_partner_id)
    except ValueError as error:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(error),
        ) from error

    if partner is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown delivery partner {payload.delivery_partner_id}",
        )

    cart = await preferences.load_cart(session_id)
    summary = compute_order_summary(cart, partner, payload.discounts)
    logger.info(
        "Order summary computed",
        extra={
            "session_id": session_id,
            "lines": len(summary.lines),
            "total": str(summary.total),
        },
    )
    return summary

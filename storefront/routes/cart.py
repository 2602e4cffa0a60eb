"""Cart API routes for the storefront"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..core.dependencies import get_session_manager
from ..core.session import (
    CartSession,
    CartSessionManager,
    ProductNotFoundError,
    ShippingNotEligibleError,
    UnknownShippingOptionError,
)
from ..models.cart import (
    AddToCartRequest,
    ApplyPromoRequest,
    SelectShippingRequest,
    UpdateCartItemRequest,
)
from ..models.checkout import CartSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def get_cart_session(
    session_id: str,
    manager: CartSessionManager = Depends(get_session_manager),
) -> CartSession:
    """Resolve the cart session named in the path, creating it on first use"""
    return manager.get_or_create_session(session_id)


def _summary(session: CartSession) -> CartSummary:
    return session.summary(currency=settings.currency)


@router.get("/{session_id}", response_model=CartSummary)
async def get_cart(session: CartSession = Depends(get_cart_session)):
    """Get cart with current totals"""
    return _summary(session)


@router.post("/{session_id}/items", response_model=CartSummary)
async def add_to_cart(
    request: AddToCartRequest,
    session: CartSession = Depends(get_cart_session),
):
    """Add an item to the cart"""
    try:
        session.add_product(request.product_id, request.quantity)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    return _summary(session)


@router.put("/{session_id}/items/{product_id}", response_model=CartSummary)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    session: CartSession = Depends(get_cart_session),
):
    """Update item quantity in cart; zero removes the item"""
    if request.quantity > 0 and session.store.get_item(product_id) is None:
        raise HTTPException(status_code=404, detail="Item not in cart")
    session.set_quantity(product_id, request.quantity)
    return _summary(session)


@router.delete("/{session_id}/items/{product_id}", response_model=CartSummary)
async def remove_from_cart(
    product_id: str,
    session: CartSession = Depends(get_cart_session),
):
    """Remove an item from the cart"""
    session.remove_item(product_id)
    return _summary(session)


@router.delete("/{session_id}", response_model=CartSummary)
async def clear_cart(session: CartSession = Depends(get_cart_session)):
    """Clear all items from cart"""
    session.clear()
    return _summary(session)


@router.put("/{session_id}/shipping", response_model=CartSummary)
async def select_shipping(
    request: SelectShippingRequest,
    session: CartSession = Depends(get_cart_session),
):
    """Select a shipping option"""
    try:
        session.select_shipping(request.option_id)
    except UnknownShippingOptionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ShippingNotEligibleError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _summary(session)


@router.post("/{session_id}/promo", response_model=CartSummary)
async def apply_promo(
    request: ApplyPromoRequest,
    session: CartSession = Depends(get_cart_session),
):
    """Apply a promo code; a rejection is reported in the promo status"""
    await session.apply_promo(request.code)
    return _summary(session)


@router.delete("/{session_id}/promo", response_model=CartSummary)
async def remove_promo(session: CartSession = Depends(get_cart_session)):
    """Remove the active promo code"""
    session.remove_promo()
    return _summary(session)


@router.post("/{session_id}/refresh", response_model=CartSummary)
async def refresh_cart(session: CartSession = Depends(get_cart_session)):
    """Re-price every item from the live catalog"""
    dropped = session.refresh()
    if dropped:
        logger.info(f"Refresh dropped {len(dropped)} items from cart {session.session_id}")
    return _summary(session)

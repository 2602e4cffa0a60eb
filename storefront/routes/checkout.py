"""Checkout API routes for the storefront"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..core.dependencies import get_checkout_service, get_order_service, get_token_auth
from ..core.session import CartSession
from ..database.orders import InMemoryOrderService
from ..models.checkout import CheckoutOutcome, GateDecision, Order
from ..services.auth import TokenAuth
from ..services.checkout import CheckoutService
from .cart import get_cart_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: str,
    orders: InMemoryOrderService = Depends(get_order_service),
):
    """Get order details"""
    order = orders.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("/orders", response_model=list[Order])
async def list_orders(
    limit: int = 50,
    orders: InMemoryOrderService = Depends(get_order_service),
):
    """List recent orders"""
    return orders.list_orders(limit=limit)


@router.get("/{session_id}/gate", response_model=GateDecision)
async def checkout_gate(
    session: CartSession = Depends(get_cart_session),
    auth: TokenAuth = Depends(get_token_auth),
):
    """
    Evaluate whether the cart may proceed to checkout.

    A shopper without a valid bearer token gets a redirect to the login
    page that resumes at checkout; an empty cart gets no redirect.
    """
    return session.gate.evaluate(session.store.item_count, auth.is_authenticated())


@router.post("/{session_id}", response_model=CheckoutOutcome)
async def checkout(
    session: CartSession = Depends(get_cart_session),
    auth: TokenAuth = Depends(get_token_auth),
    checkout_service: CheckoutService = Depends(get_checkout_service),
):
    """
    Place an order for the cart.

    Blocked checkouts and order rejections are returned with success=false;
    the cart is only cleared once the order is confirmed.
    """
    outcome = await checkout_service.place_order(session, auth.is_authenticated())
    if outcome.success:
        logger.info(f"Checkout completed for {auth.subject}: {outcome.order.order_id}")
    return outcome

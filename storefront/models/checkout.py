"""Checkout models for the storefront cart"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel

from .cart import CartItemView
from .pricing import DiscountRule, PricingResult, ShippingOption


class GateState(str, Enum):
    ALLOWED = "allowed"
    BLOCKED = "blocked"


class BlockReason(str, Enum):
    EMPTY_CART = "empty_cart"
    NOT_AUTHENTICATED = "not_authenticated"


class Redirect(BaseModel):
    """Where to send the shopper, and where to come back to afterwards"""
    target: str
    resume_to: str


class GateDecision(BaseModel):
    """Result of evaluating the checkout gate"""
    state: GateState
    reason: Optional[BlockReason] = None
    redirect: Optional[Redirect] = None

    @property
    def allowed(self) -> bool:
        return self.state == GateState.ALLOWED


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    """Item in an order"""
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class Order(BaseModel):
    """Placed order"""
    order_id: str
    status: OrderStatus
    items: list[OrderItem]
    shipping_option_id: str
    discount_code: Optional[str] = None
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str = "USD"
    created_at: datetime
    updated_at: datetime


class OrderConfirmation(BaseModel):
    """Order service accepted the cart"""
    order: Order


class OrderRejection(BaseModel):
    """Order service refused the cart"""
    reason: str


OrderResult = Union[OrderConfirmation, OrderRejection]


class CheckoutOutcome(BaseModel):
    """Result of a checkout attempt"""
    success: bool
    decision: GateDecision
    order: Optional[Order] = None
    error_message: Optional[str] = None


class PromoStatus(BaseModel):
    """Promo code state shown next to the cart totals"""
    code: Optional[str] = None
    applied: bool = False
    pending: bool = False
    message: Optional[str] = None


class CartSummary(BaseModel):
    """Everything the cart page needs in one response"""
    session_id: str
    version: int
    items: list[CartItemView]
    totals: PricingResult
    shipping_options: list[ShippingOption]
    selected_shipping: Optional[str] = None
    free_shipping_gap: Optional[Decimal] = None
    promo: PromoStatus
    discount_rule: Optional[DiscountRule] = None
    currency: str = "USD"


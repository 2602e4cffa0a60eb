# Storefront Models

from .product import Product, ProductSnapshot
from .cart import (
    CartItem,
    CartState,
    CartItemView,
    AddToCartRequest,
    UpdateCartItemRequest,
    SelectShippingRequest,
    ApplyPromoRequest,
    DEFAULT_MAX_QUANTITY,
)
from .pricing import (
    ShippingOption,
    DiscountKind,
    DiscountRule,
    PromoRejection,
    PromoResult,
    PricingResult,
    to_cents,
)
from .checkout import (
    GateState,
    BlockReason,
    Redirect,
    GateDecision,
    Order,
    OrderItem,
    OrderStatus,
    OrderConfirmation,
    OrderRejection,
    OrderResult,
    CheckoutOutcome,
    PromoStatus,
    CartSummary,
)

__all__ = [
    "Product",
    "ProductSnapshot",
    "CartItem",
    "CartState",
    "CartItemView",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "SelectShippingRequest",
    "ApplyPromoRequest",
    "DEFAULT_MAX_QUANTITY",
    "ShippingOption",
    "DiscountKind",
    "DiscountRule",
    "PromoRejection",
    "PromoResult",
    "PricingResult",
    "to_cents",
    "GateState",
    "BlockReason",
    "Redirect",
    "GateDecision",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderConfirmation",
    "OrderRejection",
    "OrderResult",
    "CheckoutOutcome",
    "PromoStatus",
    "CartSummary",
]

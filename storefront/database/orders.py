"""Order submission for the storefront cart"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..models.cart import CartItem
from ..models.checkout import (
    Order,
    OrderConfirmation,
    OrderItem,
    OrderRejection,
    OrderResult,
    OrderStatus,
)
from ..models.pricing import DiscountRule, ShippingOption
from ..services.pricing import DEFAULT_TAX_RATE, compute_totals
from .products import CatalogService

logger = logging.getLogger(__name__)


class OrderServiceError(Exception):
    """Order service could not be reached or failed unexpectedly"""
    pass


class OrderService(Protocol):
    async def submit(
        self,
        items: Sequence[CartItem],
        shipping_option_id: str,
        discount_rule: Optional[DiscountRule],
    ) -> OrderResult:
        ...


class InMemoryOrderService:
    """In-memory order storage that accepts any cart the catalog still carries"""

    def __init__(
        self,
        catalog: CatalogService,
        shipping_options: Sequence[ShippingOption],
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        currency: str = "USD",
    ):
        self.catalog = catalog
        self.shipping_options = {o.id: o for o in shipping_options}
        self.tax_rate = tax_rate
        self.currency = currency
        self.orders: dict[str, Order] = {}

    async def submit(
        self,
        items: Sequence[CartItem],
        shipping_option_id: str,
        discount_rule: Optional[DiscountRule],
    ) -> OrderResult:
        """Create an order from a cart snapshot"""
        if not items:
            return OrderRejection(reason="Cart is empty")

        shipping = self.shipping_options.get(shipping_option_id)
        if shipping is None:
            return OrderRejection(reason=f"Unknown shipping option {shipping_option_id}")

        for item in items:
            if self.catalog.get_product(item.product_id) is None:
                return OrderRejection(reason=f"{item.snapshot.name} is no longer available")

        totals = compute_totals(items, shipping, discount_rule, tax_rate=self.tax_rate).rounded()
        if not totals.shipping_valid:
            return OrderRejection(reason=f"{shipping.label} is not available for this order")

        now = datetime.now(timezone.utc)
        order = Order(
            order_id=f"ORD-{uuid.uuid4().hex[:8].upper()}",
            status=OrderStatus.COMPLETED,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    product_name=item.snapshot.name,
                    quantity=item.quantity,
                    unit_price=item.snapshot.unit_price,
                    total_price=item.line_total,
                )
                for item in items
            ],
            shipping_option_id=shipping.id,
            discount_code=discount_rule.code if discount_rule else None,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            tax=totals.tax,
            discount_amount=totals.discount_amount,
            total=totals.grand_total,
            currency=self.currency,
            created_at=now,
            updated_at=now,
        )

        self.orders[order.order_id] = order
        logger.info(f"Order {order.order_id} created: {order.total} {order.currency}")
        return OrderConfirmation(order=order)

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def list_orders(self, limit: int = 50) -> list[Order]:
        """List recent orders"""
        orders = list(self.orders.values())
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders[:limit]

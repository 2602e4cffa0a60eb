"""
Cart store

Sole owner of a shopper's CartState. Every mutation is written through
to the injected CartStorage before the call returns.
"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import ValidationError

from ..database.storage import CartStorage
from ..models.cart import DEFAULT_MAX_QUANTITY, CartItem, CartState
from ..models.pricing import DiscountRule, PricingResult, ShippingOption
from ..models.product import ProductSnapshot
from .pricing import DEFAULT_TAX_RATE, calculate_subtotal, compute_totals

logger = logging.getLogger(__name__)


def clamp(value: int, lowest: int, highest: int) -> int:
    return max(lowest, min(value, highest))


def _find(state: CartState, product_id: str) -> Optional[CartItem]:
    return next((item for item in state.items if item.product_id == product_id), None)


class CartStore:
    """Persistent shopping cart"""

    def __init__(
        self,
        storage: CartStorage,
        key: str = "cart",
        default_max_quantity: int = DEFAULT_MAX_QUANTITY,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
    ):
        self.storage = storage
        self.key = key
        self.default_max_quantity = default_max_quantity
        self.tax_rate = tax_rate
        self._state = self._rehydrate()

    # --- persistence -----------------------------------------------------

    def _rehydrate(self) -> CartState:
        """Load the saved cart, or start empty if there is none or it is unreadable"""
        payload = self.storage.load(self.key)
        if payload is None:
            return CartState()

        try:
            state = CartState.model_validate_json(payload)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable cart in slot {self.key}: {e}")
            self.storage.delete(self.key)
            return CartState()

        logger.debug(f"Rehydrated cart {self.key}: {len(state.items)} items, version {state.version}")
        return state

    def _commit(self, draft: CartState) -> None:
        """Persist a modified copy of the state, then make it current"""
        draft.version = self._state.version + 1
        self.storage.save(self.key, draft.model_dump_json())
        self._state = draft

    def _draft(self) -> CartState:
        return self._state.model_copy(deep=True)

    # --- queries -----------------------------------------------------------

    @property
    def state(self) -> CartState:
        return self._state.model_copy(deep=True)

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def items(self) -> list[CartItem]:
        return [item.model_copy() for item in self._state.items]

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._state.items)

    @property
    def is_empty(self) -> bool:
        return not self._state.items

    @property
    def subtotal(self) -> Decimal:
        return calculate_subtotal(self._state.items)

    def get_item(self, product_id: str) -> Optional[CartItem]:
        item = _find(self._state, product_id)
        return item.model_copy() if item else None

    def _ceiling(self, snapshot: ProductSnapshot) -> int:
        return snapshot.stock_available or self.default_max_quantity

    # --- mutations ---------------------------------------------------------

    def add_item(self, snapshot: ProductSnapshot, requested_qty: int = 1) -> CartItem:
        """
        Add a product, or increase its quantity if it is already in the cart.

        Quantities above the stock ceiling are clamped, not rejected, and
        an add always counts for at least one unit.
        Re-adding a product also refreshes its snapshot.
        """
        requested_qty = max(1, requested_qty)
        draft = self._draft()
        existing = _find(draft, snapshot.id)
        ceiling = self._ceiling(snapshot)

        if existing:
            wanted = existing.quantity + requested_qty
            existing.snapshot = snapshot
            existing.quantity = clamp(wanted, 1, ceiling)
            item = existing
        else:
            wanted = requested_qty
            item = CartItem(
                product_id=snapshot.id,
                snapshot=snapshot,
                quantity=clamp(requested_qty, 1, ceiling),
            )
            draft.items.append(item)

        if item.quantity != wanted:
            logger.info(f"Clamped quantity for {snapshot.id}: requested {wanted}, kept {item.quantity}")

        self._commit(draft)
        logger.info(f"Added to cart {self.key}: product_id={snapshot.id}, quantity={item.quantity}")
        return item.model_copy()

    def remove_item(self, product_id: str) -> None:
        """Remove a line; removing a product that is not in the cart does nothing"""
        if _find(self._state, product_id) is None:
            return

        draft = self._draft()
        draft.items = [i for i in draft.items if i.product_id != product_id]
        self._commit(draft)
        logger.info(f"Removed from cart {self.key}: product_id={product_id}")

    def set_quantity(self, product_id: str, qty: int) -> Optional[CartItem]:
        """Set a line's quantity; zero or less removes the line"""
        if qty <= 0:
            self.remove_item(product_id)
            return None

        draft = self._draft()
        item = _find(draft, product_id)
        if item is None:
            return None

        item.quantity = clamp(qty, 1, self._ceiling(item.snapshot))
        if item.quantity != qty:
            logger.info(f"Clamped quantity for {product_id}: requested {qty}, kept {item.quantity}")

        self._commit(draft)
        logger.info(f"Updated cart {self.key}: product_id={product_id}, quantity={item.quantity}")
        return item.model_copy()

    def replace_snapshot(self, snapshot: ProductSnapshot) -> Optional[CartItem]:
        """Swap in a fresh snapshot for a line, re-clamping to the new stock"""
        draft = self._draft()
        item = _find(draft, snapshot.id)
        if item is None:
            return None

        item.snapshot = snapshot
        item.quantity = clamp(item.quantity, 1, self._ceiling(snapshot))
        self._commit(draft)
        return item.model_copy()

    def clear(self) -> None:
        """Remove every line"""
        draft = self._draft()
        draft.items = []
        self._commit(draft)
        logger.info(f"Cart {self.key} cleared")

    # --- pricing -----------------------------------------------------------

    def totals(
        self,
        shipping_option: Optional[ShippingOption] = None,
        discount_rule: Optional[DiscountRule] = None,
        shipping_options: Optional[Sequence[ShippingOption]] = None,
    ) -> PricingResult:
        """Current totals; see pricing.compute_totals"""
        return compute_totals(
            self._state.items,
            shipping_option,
            discount_rule,
            tax_rate=self.tax_rate,
            shipping_options=shipping_options,
        )

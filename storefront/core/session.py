"""Cart sessions: per-shopper cart plus the UI state around it"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from ..database.products import CatalogService
from ..database.storage import CartStorage
from ..models.cart import CartItem, CartItemView
from ..models.checkout import CartSummary, GateDecision, PromoStatus
from ..models.pricing import PricingResult, PromoResult, ShippingOption
from ..models.product import ProductSnapshot
from ..services.auth import AuthService, SessionAuth
from ..services.cart_store import CartStore
from ..services.checkout import CheckoutGate
from ..services.pricing import DEFAULT_TAX_RATE
from ..services.promo import PromoApplicator, PromoResolver
from ..services.shipping import ShippingPolicy

logger = logging.getLogger(__name__)


class CartError(Exception):
    """Base class for cart session errors"""
    pass


class ProductNotFoundError(CartError):
    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class UnknownShippingOptionError(CartError):
    def __init__(self, option_id: str):
        super().__init__(f"Unknown shipping option {option_id}")
        self.option_id = option_id


class ShippingNotEligibleError(CartError):
    def __init__(self, option: ShippingOption, subtotal: Decimal):
        super().__init__(
            f"{option.label} requires a minimum order value of {option.min_order_value}"
        )
        self.option = option
        self.subtotal = subtotal


class CartSession:
    """
    One shopper's cart session.

    Owns the persisted CartStore and the state that is deliberately not
    persisted: the shipping selection and the active promo code.
    """

    def __init__(
        self,
        session_id: str,
        store: CartStore,
        catalog: CatalogService,
        shipping_policy: ShippingPolicy,
        promo_resolver: PromoResolver,
        gate: Optional[CheckoutGate] = None,
        auth: Optional[AuthService] = None,
    ):
        self.session_id = session_id
        self.store = store
        self.catalog = catalog
        self.shipping_policy = shipping_policy
        self.gate = gate or CheckoutGate()
        self.auth = auth or SessionAuth()
        self.promo = PromoApplicator(promo_resolver, lambda: self.store.subtotal)
        self.selected_shipping_id = shipping_policy.default_selection(store.subtotal).id
        self.shipping_chosen = False
        now = datetime.now(timezone.utc)
        self.created_at = now
        self.updated_at = now

    def _after_mutation(self) -> None:
        subtotal = self.store.subtotal
        if self.shipping_chosen:
            option, fell_back = self.shipping_policy.resolve_selection(self.selected_shipping_id, subtotal)
            self.shipping_chosen = not fell_back
        else:
            option = self.shipping_policy.default_selection(subtotal)
        self.selected_shipping_id = option.id
        self.promo.invalidate_if_changed(subtotal)
        self.updated_at = datetime.now(timezone.utc)

    # --- cart ------------------------------------------------------------

    def add_product(self, product_id: str, quantity: int = 1) -> CartItem:
        """Look a product up in the catalog and add it"""
        snapshot = self.catalog.get_product(product_id)
        if snapshot is None:
            raise ProductNotFoundError(product_id)
        return self.add_item(snapshot, quantity)

    def add_item(self, snapshot: ProductSnapshot, quantity: int = 1) -> CartItem:
        item = self.store.add_item(snapshot, quantity)
        self._after_mutation()
        return item

    def set_quantity(self, product_id: str, quantity: int) -> Optional[CartItem]:
        item = self.store.set_quantity(product_id, quantity)
        self._after_mutation()
        return item

    def remove_item(self, product_id: str) -> None:
        self.store.remove_item(product_id)
        self._after_mutation()

    def clear(self) -> None:
        self.store.clear()
        self.promo.clear()
        self._after_mutation()

    def refresh(self) -> list[str]:
        """
        Re-snapshot every line from the live catalog.

        Returns:
            IDs of products that were dropped because the catalog no
            longer has them
        """
        dropped = []
        for item in self.store.items:
            snapshot = self.catalog.get_product(item.product_id)
            if snapshot is None:
                self.store.remove_item(item.product_id)
                dropped.append(item.product_id)
            elif snapshot != item.snapshot:
                self.store.replace_snapshot(snapshot)

        if dropped:
            logger.info(f"Dropped unavailable products from session {self.session_id}: {dropped}")
        self._after_mutation()
        return dropped

    # --- shipping ----------------------------------------------------------

    def select_shipping(self, option_id: str) -> ShippingOption:
        option = self.shipping_policy.get(option_id)
        if option is None:
            raise UnknownShippingOptionError(option_id)

        totals = self.store.totals(option, shipping_options=[option])
        if not totals.shipping_valid:
            raise ShippingNotEligibleError(option, totals.subtotal)

        self.selected_shipping_id = option.id
        self.shipping_chosen = True
        return option

    def current_shipping(self) -> ShippingOption:
        """Selected option, falling back to the cheapest eligible one"""
        option, _ = self.shipping_policy.resolve_selection(
            self.selected_shipping_id, self.store.subtotal
        )
        self.selected_shipping_id = option.id
        return option

    # --- promo ---------------------------------------------------------------

    async def apply_promo(self, code: str) -> Optional[PromoResult]:
        return await self.promo.apply(code)

    def remove_promo(self) -> None:
        self.promo.clear()

    # --- derived ---------------------------------------------------------------

    def totals(self) -> PricingResult:
        """Totals for the cart page; an empty cart is not charged for shipping"""
        shipping = None if self.store.is_empty else self.current_shipping()
        return self.store.totals(
            shipping,
            self.promo.active_rule,
            shipping_options=self.shipping_policy.options,
        )

    def checkout_decision(self) -> GateDecision:
        return self.gate.evaluate(self.store.item_count, self.auth.is_authenticated())

    def summary(self, currency: str = "USD") -> CartSummary:
        totals = self.totals()
        gap = self.shipping_policy.free_shipping_gap(totals.subtotal)
        return CartSummary(
            session_id=self.session_id,
            version=self.store.version,
            items=[
                CartItemView(
                    product_id=item.product_id,
                    name=item.snapshot.name,
                    thumbnail=item.snapshot.thumbnail,
                    unit_price=item.snapshot.unit_price,
                    quantity=item.quantity,
                    max_quantity=item.stock_ceiling(self.store.default_max_quantity),
                    line_total=item.line_total,
                )
                for item in self.store.items
            ],
            totals=totals.rounded(),
            shipping_options=self.shipping_policy.options,
            selected_shipping=self.selected_shipping_id,
            free_shipping_gap=gap,
            promo=PromoStatus(
                code=self.promo.code,
                applied=self.promo.active_rule is not None,
                pending=self.promo.pending,
                message=self.promo.message,
            ),
            discount_rule=self.promo.active_rule,
            currency=currency,
        )


class CartSessionManager:
    """Manages cart sessions"""

    def __init__(
        self,
        storage: CartStorage,
        catalog: CatalogService,
        shipping_policy: ShippingPolicy,
        promo_resolver: PromoResolver,
        gate: Optional[CheckoutGate] = None,
        cart_key: str = "cart",
        default_max_quantity: int = 10,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
    ):
        self.storage = storage
        self.catalog = catalog
        self.shipping_policy = shipping_policy
        self.promo_resolver = promo_resolver
        self.gate = gate or CheckoutGate()
        self.cart_key = cart_key
        self.default_max_quantity = default_max_quantity
        self.tax_rate = tax_rate
        self.sessions: dict[str, CartSession] = {}

    def create_session(self, session_id: Optional[str] = None) -> CartSession:
        """Create a session, rehydrating its cart from storage if one was saved"""
        session_id = session_id or str(uuid.uuid4())
        store = CartStore(
            self.storage,
            key=f"{self.cart_key}:{session_id}",
            default_max_quantity=self.default_max_quantity,
            tax_rate=self.tax_rate,
        )
        session = CartSession(
            session_id=session_id,
            store=store,
            catalog=self.catalog,
            shipping_policy=self.shipping_policy,
            promo_resolver=self.promo_resolver,
            gate=self.gate,
        )
        self.sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[CartSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> CartSession:
        """Get existing session or create new one"""
        if session_id and session_id in self.sessions:
            return self.sessions[session_id]
        return self.create_session(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Forget a session; its saved cart stays in storage"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

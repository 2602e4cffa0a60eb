"""Checkout gate and order hand-off"""

import logging
from typing import TYPE_CHECKING

from ..database.orders import OrderService, OrderServiceError
from ..models.checkout import (
    BlockReason,
    CheckoutOutcome,
    GateDecision,
    GateState,
    OrderConfirmation,
    Redirect,
)

if TYPE_CHECKING:
    from ..core.session import CartSession

logger = logging.getLogger(__name__)


class CheckoutGate:
    """
    Decides whether a cart may proceed to checkout.

    Allowed needs a non-empty cart and an authenticated shopper. An empty
    cart is reported first and carries no redirect; a missing login
    carries a redirect back to the checkout page.
    """

    def __init__(self, login_path: str = "/login", checkout_path: str = "/checkout"):
        self.login_path = login_path
        self.checkout_path = checkout_path

    def evaluate(self, item_count: int, is_authenticated: bool) -> GateDecision:
        if item_count <= 0:
            return GateDecision(state=GateState.BLOCKED, reason=BlockReason.EMPTY_CART)

        if not is_authenticated:
            return GateDecision(
                state=GateState.BLOCKED,
                reason=BlockReason.NOT_AUTHENTICATED,
                redirect=Redirect(target=self.login_path, resume_to=self.checkout_path),
            )

        return GateDecision(state=GateState.ALLOWED)


class CheckoutService:
    """Submits a cart session to the order service once the gate allows it"""

    def __init__(self, order_service: OrderService, gate: CheckoutGate):
        self.order_service = order_service
        self.gate = gate

    async def place_order(self, session: "CartSession", is_authenticated: bool) -> CheckoutOutcome:
        decision = self.gate.evaluate(session.store.item_count, is_authenticated)
        if not decision.allowed:
            logger.info(f"Checkout blocked for session {session.session_id}: {decision.reason.value}")
            return CheckoutOutcome(success=False, decision=decision)

        shipping = session.current_shipping()
        try:
            result = await self.order_service.submit(
                session.store.items,
                shipping.id,
                session.promo.active_rule,
            )
        except OrderServiceError as e:
            logger.error(f"Order submission failed for session {session.session_id}: {e}")
            return CheckoutOutcome(success=False, decision=decision, error_message=str(e))

        if not isinstance(result, OrderConfirmation):
            logger.info(f"Order rejected for session {session.session_id}: {result.reason}")
            return CheckoutOutcome(success=False, decision=decision, error_message=result.reason)

        session.clear()
        logger.info(f"Order {result.order.order_id} placed for session {session.session_id}")
        return CheckoutOutcome(success=True, decision=decision, order=result.order)

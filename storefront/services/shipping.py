"""Shipping policy for the storefront cart"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from ..models.pricing import ShippingOption
from .pricing import ZERO, is_eligible

logger = logging.getLogger(__name__)


class ShippingPolicy:
    """Static, ordered set of shipping options and the rules for picking one"""

    def __init__(self, options: Sequence[ShippingOption]):
        if not options:
            raise ValueError("At least one shipping option is required")
        if all(o.min_order_value is not None and o.min_order_value > ZERO for o in options):
            raise ValueError("At least one shipping option must be available at any order value")
        self._options = list(options)

    @property
    def options(self) -> list[ShippingOption]:
        return list(self._options)

    def get(self, option_id: Optional[str]) -> Optional[ShippingOption]:
        """Get an option by ID"""
        return next((o for o in self._options if o.id == option_id), None)

    def eligible_options(self, subtotal: Decimal) -> list[ShippingOption]:
        return [o for o in self._options if is_eligible(o, subtotal)]

    def cheapest_eligible(self, subtotal: Decimal) -> ShippingOption:
        """Cheapest option selectable at this subtotal; ties go to the earlier option"""
        return min(self.eligible_options(subtotal), key=lambda o: o.price)

    def default_selection(self, subtotal: Decimal) -> ShippingOption:
        """Selection a new session starts with"""
        return self.cheapest_eligible(subtotal)

    def resolve_selection(
        self,
        selected_id: Optional[str],
        subtotal: Decimal,
    ) -> tuple[ShippingOption, bool]:
        """
        Keep the selected option if it is still eligible, otherwise fall back.

        Returns:
            Tuple of (option to use, whether a fallback happened)
        """
        selected = self.get(selected_id)
        if selected is not None and is_eligible(selected, subtotal):
            return selected, False

        fallback = self.cheapest_eligible(subtotal)
        if selected_id is not None:
            logger.info(
                f"Shipping option {selected_id} not available at subtotal {subtotal}, "
                f"falling back to {fallback.id}"
            )
        return fallback, True

    def free_shipping_gap(self, subtotal: Decimal) -> Optional[Decimal]:
        """Amount still missing to reach the nearest threshold option, if any"""
        gaps = [
            o.min_order_value - subtotal
            for o in self._options
            if o.min_order_value is not None and subtotal < o.min_order_value
        ]
        return min(gaps) if gaps else None

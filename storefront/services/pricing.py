"""
Pricing engine

Pure derivation of cart totals. Nothing here touches storage or the
network; totals are recomputed from the current cart on every call and
money stays unrounded until it is presented.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..models.cart import CartItem
from ..models.pricing import DiscountKind, DiscountRule, PricingResult, ShippingOption

ZERO = Decimal("0")
DEFAULT_TAX_RATE = Decimal("0.07")


def calculate_subtotal(items: Iterable[CartItem]) -> Decimal:
    """Sum of unit price times quantity over all lines"""
    return sum((item.line_total for item in items), ZERO)


def is_eligible(option: ShippingOption, subtotal: Decimal) -> bool:
    """Whether a shipping option may be selected at this subtotal"""
    return option.min_order_value is None or subtotal >= option.min_order_value


def discount_amount(subtotal: Decimal, rule: Optional[DiscountRule]) -> Decimal:
    """
    Amount a discount rule takes off the given subtotal.

    The result is never negative and never larger than the subtotal.
    A rule whose own minimum order value is not met contributes nothing.
    """
    if rule is None or subtotal <= ZERO:
        return ZERO
    if rule.min_order_value is not None and subtotal < rule.min_order_value:
        return ZERO

    if rule.kind == DiscountKind.PERCENT:
        amount = subtotal * rule.value
    else:
        amount = rule.value

    return max(ZERO, min(amount, subtotal))


def compute_totals(
    items: Sequence[CartItem],
    shipping_option: Optional[ShippingOption] = None,
    discount_rule: Optional[DiscountRule] = None,
    *,
    tax_rate: Decimal = DEFAULT_TAX_RATE,
    shipping_options: Optional[Sequence[ShippingOption]] = None,
) -> PricingResult:
    """
    Compute subtotal, shipping, tax, discount and grand total.

    Args:
        items: Cart lines
        shipping_option: Selected shipping option, if any
        discount_rule: Active discount rule, if any
        tax_rate: Flat tax rate applied to the subtotal
        shipping_options: Options to report eligibility for; defaults to
            the selected option only

    Returns:
        PricingResult with unrounded money fields. The engine does not pick
        a replacement for an ineligible selection, it only reports
        shipping_valid=False and the per-option eligibility.
    """
    subtotal = calculate_subtotal(items)
    items_count = sum(item.quantity for item in items)

    if shipping_options is None:
        shipping_options = [shipping_option] if shipping_option else []
    eligibility = {option.id: is_eligible(option, subtotal) for option in shipping_options}

    if shipping_option is None:
        shipping_cost = ZERO
        shipping_valid = True
    else:
        shipping_cost = shipping_option.price
        shipping_valid = is_eligible(shipping_option, subtotal)
        eligibility.setdefault(shipping_option.id, shipping_valid)

    tax = subtotal * tax_rate
    discount = discount_amount(subtotal, discount_rule)
    grand_total = max(ZERO, subtotal + shipping_cost + tax - discount)

    return PricingResult(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax=tax,
        discount_amount=discount,
        grand_total=grand_total,
        items_count=items_count,
        shipping_eligibility=eligibility,
        shipping_valid=shipping_valid,
    )

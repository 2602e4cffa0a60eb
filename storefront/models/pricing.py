"""Pricing models for the storefront cart"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

CENT = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    """Round a money amount for presentation"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class ShippingOption(BaseModel):
    """Shipping option offered at checkout"""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    price: Decimal = Field(ge=0)
    eta_label: str
    min_order_value: Optional[Decimal] = None


class DiscountKind(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class DiscountRule(BaseModel):
    """
    Resolved promotional adjustment.

    Percent values are fractions of the subtotal (0.20 is 20%).
    A rule with min_order_value only applies while the subtotal reaches it.
    """
    model_config = ConfigDict(frozen=True)

    code: str
    kind: DiscountKind
    value: Decimal = Field(gt=0)
    min_order_value: Optional[Decimal] = None


class PromoRejection(BaseModel):
    """A promo code that did not resolve to a discount"""
    model_config = ConfigDict(frozen=True)

    code: str
    reason: str


PromoResult = Union[DiscountRule, PromoRejection]


class PricingResult(BaseModel):
    """Totals derived from the cart; recomputed on every read"""
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    discount_amount: Decimal
    grand_total: Decimal
    items_count: int
    shipping_eligibility: dict[str, bool] = {}
    shipping_valid: bool = True

    def rounded(self) -> "PricingResult":
        """Copy with every money field rounded to cents"""
        return self.model_copy(update={
            "subtotal": to_cents(self.subtotal),
            "shipping_cost": to_cents(self.shipping_cost),
            "tax": to_cents(self.tax),
            "discount_amount": to_cents(self.discount_amount),
            "grand_total": to_cents(self.grand_total),
        })

"""Cart models for the storefront cart"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .product import ProductSnapshot

# Quantity ceiling for products whose stock is not tracked (stock 0)
DEFAULT_MAX_QUANTITY = 10


class CartItem(BaseModel):
    """One product line in a shopping cart"""
    product_id: str
    snapshot: ProductSnapshot
    quantity: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_identity(self) -> "CartItem":
        if self.product_id != self.snapshot.id:
            raise ValueError(
                f"product_id {self.product_id!r} does not match snapshot id {self.snapshot.id!r}"
            )
        return self

    def stock_ceiling(self, default_max: int = DEFAULT_MAX_QUANTITY) -> int:
        """Largest quantity this line may hold"""
        return self.snapshot.stock_available or default_max

    @property
    def line_total(self) -> Decimal:
        return self.snapshot.unit_price * self.quantity


class CartState(BaseModel):
    """
    Persisted cart state.

    The JSON form of this model is the record written to cart storage:
    {"items": [{"product_id", "snapshot", "quantity"}], "version"}
    """
    items: list[CartItem] = []
    version: int = Field(ge=0, default=0)

    @model_validator(mode="after")
    def _check_unique_products(self) -> "CartState":
        seen = set()
        for item in self.items:
            if item.product_id in seen:
                raise ValueError(f"Duplicate cart line for product {item.product_id!r}")
            seen.add(item.product_id)
        return self


class AddToCartRequest(BaseModel):
    """Request to add a catalog product to the cart"""
    product_id: str
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(BaseModel):
    """Request to set a line quantity; zero or less removes the line"""
    quantity: int


class SelectShippingRequest(BaseModel):
    """Request to select a shipping option"""
    option_id: str


class ApplyPromoRequest(BaseModel):
    """Request to apply a promo code"""
    code: str


class CartItemView(BaseModel):
    """Cart line as presented to the shopper"""
    product_id: str
    name: str
    thumbnail: Optional[str] = None
    unit_price: Decimal
    quantity: int
    max_quantity: int
    line_total: Decimal

"""Product models for the storefront cart"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductSnapshot(BaseModel):
    """Immutable copy of a catalog product taken when it enters the cart"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    unit_price: Decimal = Field(ge=0)
    stock_available: int = Field(ge=0, default=0)
    thumbnail: Optional[str] = None
    seller_id: Optional[str] = None


class Product(BaseModel):
    """Live product in the catalog"""
    id: str
    name: str
    description: str = ""
    price: Decimal = Field(ge=0)
    sku: str
    images: list[str] = []
    seller_id: Optional[str] = None
    stock_quantity: int = Field(ge=0, default=0)

    def snapshot(self) -> ProductSnapshot:
        """Capture the product as it looks right now"""
        return ProductSnapshot(
            id=self.id,
            name=self.name,
            unit_price=self.price,
            stock_available=self.stock_quantity,
            thumbnail=self.images[0] if self.images else None,
            seller_id=self.seller_id,
        )

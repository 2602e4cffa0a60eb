"""In-memory product catalog for the storefront cart"""

from decimal import Decimal
from typing import Optional, Protocol

from ..models.product import Product, ProductSnapshot


class CatalogService(Protocol):
    def get_product(self, product_id: str) -> Optional[ProductSnapshot]:
        ...


# Demo catalog
PRODUCTS: dict[str, Product] = {
    "prod-001": Product(
        id="prod-001",
        name="Wireless Noise-Cancelling Headphones",
        description="Over-ear headphones with 30-hour battery life.",
        price=Decimal("149.99"),
        sku="AUDIO-WH-BLK",
        images=["/static/images/headphones.jpg"],
        seller_id="seller-01",
        stock_quantity=12,
    ),
    "prod-002": Product(
        id="prod-002",
        name="Stainless Steel Water Bottle",
        description="Insulated 750ml bottle, keeps drinks cold for 24 hours.",
        price=Decimal("20.00"),
        sku="HOME-BOTTLE-750",
        images=["/static/images/bottle.jpg"],
        seller_id="seller-02",
        stock_quantity=5,
    ),
    "prod-003": Product(
        id="prod-003",
        name="Cotton Crew T-Shirt",
        description="Classic fit, 100% organic cotton.",
        price=Decimal("12.50"),
        sku="CLOTH-TEE-WHT-M",
        images=["/static/images/tshirt.jpg"],
        seller_id="seller-02",
        stock_quantity=40,
    ),
    "prod-004": Product(
        id="prod-004",
        name="Handmade Ceramic Mug",
        description="Each mug is unique; stock is not tracked.",
        price=Decimal("8.75"),
        sku="HOME-MUG-HM",
        images=[],
        seller_id="seller-03",
        stock_quantity=0,
    ),
    "prod-005": Product(
        id="prod-005",
        name="Paperback Notebook",
        description="A5, dotted pages.",
        price=Decimal("4.99"),
        sku="BOOK-NOTE-A5",
        images=["/static/images/notebook.jpg"],
        stock_quantity=200,
    ),
}


class InMemoryCatalog:
    """In-memory product catalog"""

    def __init__(self, products: Optional[dict[str, Product]] = None):
        source = PRODUCTS if products is None else products
        self.products = {pid: p.model_copy() for pid, p in source.items()}

    def get_product(self, product_id: str) -> Optional[ProductSnapshot]:
        """Snapshot of a product, or None if it is not in the catalog"""
        product = self.products.get(product_id)
        return product.snapshot() if product else None

    def add_product(self, product: Product) -> None:
        self.products[product.id] = product

    def set_price(self, product_id: str, price: Decimal) -> bool:
        product = self.products.get(product_id)
        if not product:
            return False
        product.price = price
        return True

    def set_stock(self, product_id: str, quantity: int) -> bool:
        product = self.products.get(product_id)
        if not product or quantity < 0:
            return False
        product.stock_quantity = quantity
        return True

from decimal import Decimal

import pytest

from storefront.core.config import Settings
from storefront.core.session import CartSession
from storefront.database.orders import InMemoryOrderService
from storefront.database.products import InMemoryCatalog
from storefront.database.storage import InMemoryCartStorage
from storefront.models.pricing import DiscountKind, DiscountRule
from storefront.models.product import Product, ProductSnapshot
from storefront.services.cart_store import CartStore
from storefront.services.checkout import CheckoutGate
from storefront.services.promo import StaticPromoResolver
from storefront.services.shipping import ShippingPolicy


TAX_RATE = Decimal("0.07")


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def shipping_options(settings):
    return settings.shipping_options


@pytest.fixture
def shipping_policy(shipping_options):
    return ShippingPolicy(shipping_options)


@pytest.fixture
def product_a():
    return ProductSnapshot(id="A", name="Product A", unit_price=Decimal("20.00"), stock_available=5)


@pytest.fixture
def product_b():
    return ProductSnapshot(id="B", name="Product B", unit_price=Decimal("7.50"), stock_available=3)


@pytest.fixture
def untracked_product():
    return ProductSnapshot(id="U", name="Untracked", unit_price=Decimal("1.00"), stock_available=0)


@pytest.fixture
def storage():
    return InMemoryCartStorage()


@pytest.fixture
def store(storage):
    return CartStore(storage, key="cart", tax_rate=TAX_RATE)


@pytest.fixture
def catalog():
    return InMemoryCatalog({
        "A": Product(id="A", name="Product A", price=Decimal("20.00"), sku="SKU-A", stock_quantity=5),
        "B": Product(id="B", name="Product B", price=Decimal("7.50"), sku="SKU-B", stock_quantity=3),
    })


@pytest.fixture
def promo_rules():
    return [
        DiscountRule(code="WELCOME20", kind=DiscountKind.PERCENT, value=Decimal("0.20")),
        DiscountRule(code="DISCOUNT10", kind=DiscountKind.PERCENT, value=Decimal("0.10")),
        DiscountRule(code="TAKE5", kind=DiscountKind.FIXED, value=Decimal("5.00")),
    ]


@pytest.fixture
def promo_resolver(promo_rules):
    return StaticPromoResolver(promo_rules)


@pytest.fixture
def session(store, catalog, shipping_policy, promo_resolver):
    return CartSession(
        session_id="s1",
        store=store,
        catalog=catalog,
        shipping_policy=shipping_policy,
        promo_resolver=promo_resolver,
        gate=CheckoutGate(),
    )


@pytest.fixture
def order_service(catalog, shipping_options):
    return InMemoryOrderService(catalog, shipping_options, tax_rate=TAX_RATE)

"""Application wiring for the storefront cart service"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Header

from ..database.orders import InMemoryOrderService
from ..database.products import InMemoryCatalog
from ..database.storage import CartStorage, FileCartStorage, InMemoryCartStorage
from ..services.auth import TokenAuth
from ..services.checkout import CheckoutGate, CheckoutService
from ..services.promo import HttpPromoResolver, PromoResolver, StaticPromoResolver
from ..services.shipping import ShippingPolicy
from .config import get_settings
from .session import CartSessionManager

logger = logging.getLogger(__name__)


@lru_cache()
def get_catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@lru_cache()
def get_cart_storage() -> CartStorage:
    settings = get_settings()
    if settings.cart_storage_dir:
        logger.info(f"Persisting carts to {settings.cart_storage_dir}")
        return FileCartStorage(settings.cart_storage_dir)
    return InMemoryCartStorage()


@lru_cache()
def get_shipping_policy() -> ShippingPolicy:
    return ShippingPolicy(get_settings().shipping_options)


@lru_cache()
def get_promo_resolver() -> PromoResolver:
    settings = get_settings()
    if settings.promo_service_url:
        return HttpPromoResolver(settings.promo_service_url)
    return StaticPromoResolver(settings.promo_codes, delay=settings.promo_lookup_delay)


@lru_cache()
def get_checkout_gate() -> CheckoutGate:
    settings = get_settings()
    return CheckoutGate(login_path=settings.login_path, checkout_path=settings.checkout_path)


@lru_cache()
def get_order_service() -> InMemoryOrderService:
    settings = get_settings()
    return InMemoryOrderService(
        get_catalog(),
        settings.shipping_options,
        tax_rate=settings.tax_rate,
        currency=settings.currency,
    )


@lru_cache()
def get_session_manager() -> CartSessionManager:
    settings = get_settings()
    return CartSessionManager(
        storage=get_cart_storage(),
        catalog=get_catalog(),
        shipping_policy=get_shipping_policy(),
        promo_resolver=get_promo_resolver(),
        gate=get_checkout_gate(),
        cart_key=settings.cart_storage_key,
        default_max_quantity=settings.default_max_quantity,
        tax_rate=settings.tax_rate,
    )


@lru_cache()
def get_checkout_service() -> CheckoutService:
    return CheckoutService(get_order_service(), get_checkout_gate())


def get_token_auth(authorization: Optional[str] = Header(None)) -> TokenAuth:
    """Extract the bearer token from the Authorization header"""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    settings = get_settings()
    return TokenAuth(token, settings.jwt_secret_key, settings.jwt_algorithm)

"""Storefront cart configuration"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.pricing import DiscountKind, DiscountRule, ShippingOption


def _default_shipping_options() -> list[ShippingOption]:
    return [
        ShippingOption(
            id="standard",
            label="Standard Shipping",
            price=Decimal("5.99"),
            eta_label="5-7 business days",
        ),
        ShippingOption(
            id="express",
            label="Express Shipping",
            price=Decimal("14.99"),
            eta_label="2-3 business days",
        ),
        ShippingOption(
            id="free",
            label="Free Shipping",
            price=Decimal("0"),
            eta_label="7-10 business days",
            min_order_value=Decimal("50"),
        ),
    ]


def _default_promo_codes() -> list[DiscountRule]:
    return [
        DiscountRule(code="DISCOUNT10", kind=DiscountKind.PERCENT, value=Decimal("0.10")),
        DiscountRule(code="WELCOME20", kind=DiscountKind.PERCENT, value=Decimal("0.20")),
    ]


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STOREFRONT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront Cart"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8001

    # Pricing
    tax_rate: Decimal = Decimal("0.07")
    currency: str = "USD"
    default_max_quantity: int = 10
    shipping_options: list[ShippingOption] = _default_shipping_options()

    # Cart persistence
    cart_storage_key: str = "cart"
    cart_storage_dir: Optional[str] = None  # None keeps carts in memory

    # Promo codes
    promo_codes: list[DiscountRule] = _default_promo_codes()
    promo_service_url: Optional[str] = None
    promo_lookup_delay: float = 0.0

    # Auth
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Navigation
    login_path: str = "/login"
    checkout_path: str = "/checkout"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()

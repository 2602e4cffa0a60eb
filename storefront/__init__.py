"""Storefront cart: cart state, pricing and checkout for the storefront"""

__version__ = "1.0.0"

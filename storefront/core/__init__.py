# Core modules

from .config import settings, get_settings
from .session import CartSession, CartSessionManager

__all__ = ["settings", "get_settings", "CartSession", "CartSessionManager"]

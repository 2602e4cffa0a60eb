# Storage and external collaborators

from .storage import CartStorage, InMemoryCartStorage, FileCartStorage
from .products import CatalogService, InMemoryCatalog
from .orders import OrderService, OrderServiceError, InMemoryOrderService

__all__ = [
    "CartStorage",
    "InMemoryCartStorage",
    "FileCartStorage",
    "CatalogService",
    "InMemoryCatalog",
    "OrderService",
    "OrderServiceError",
    "InMemoryOrderService",
]

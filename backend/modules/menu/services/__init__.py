# backend/modules/menu/services/__init__.py

from .catalog_service import ProductCatalog, ProductInfo

__all__ = ["ProductCatalog", "ProductInfo"]

# backend/modules/menu/models/__init__.py

from .menu_models import MenuCategory, MenuProduct

__all__ = ["MenuCategory", "MenuProduct"]

# backend/tests/factories/__init__.py

"""
Shared test factories for the kitchen workflow backend.
"""

from .base import BaseFactory, bind_session
from .menu import MenuCategoryFactory, MenuProductFactory
from .table import DiningTableFactory
from .order import OrderFactory, OrderItemFactory, OrderWithItemsFactory

__all__ = [
    "BaseFactory",
    "bind_session",
    "MenuCategoryFactory",
    "MenuProductFactory",
    "DiningTableFactory",
    "OrderFactory",
    "OrderItemFactory",
    "OrderWithItemsFactory",
]

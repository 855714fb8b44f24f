# backend/modules/menu/models/menu_models.py

"""
Product catalog read by the kitchen workflow: product and category names.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship
from core.database import Base
from core.mixins import TimestampMixin, SoftDeleteMixin
from modules.orders.enums.order_enums import ProductKind


class MenuCategory(Base, TimestampMixin, SoftDeleteMixin):
    """Menu categories for organizing dishes and beverages"""
    __tablename__ = "menu_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    # "dish" or "beverage"; the two catalogs keep separate category trees
    kind = Column(String(20), nullable=False, default=ProductKind.DISH.value)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    products = relationship("MenuProduct", back_populates="category")

    def __repr__(self):
        return f"<MenuCategory(id={self.id}, name='{self.name}')>"


class MenuProduct(Base, TimestampMixin, SoftDeleteMixin):
    """Dish or beverage that can appear on an order"""
    __tablename__ = "menu_products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    kind = Column(String(20), nullable=False, default=ProductKind.DISH.value)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("menu_categories.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    category = relationship("MenuCategory", back_populates="products")

    def __repr__(self):
        return f"<MenuProduct(id={self.id}, name='{self.name}', kind={self.kind})>"

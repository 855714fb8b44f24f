# backend/modules/kds/models/__init__.py

"""
Kitchen Display System models.
"""

from .kds_models import KitchenStation

__all__ = [
    "KitchenStation",
]

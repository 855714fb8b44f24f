# backend/modules/menu/services/catalog_service.py

"""
Read-only product catalog lookups used to route order items to stations.
"""

from dataclasses import dataclass
from typing import Dict, Iterable

from sqlalchemy.orm import Session, joinedload

from ..models.menu_models import MenuProduct


@dataclass(frozen=True)
class ProductInfo:
    product_id: int
    name: str
    category: str
    kind: str


UNKNOWN_PRODUCT = "Unknown"


class ProductCatalog:
    """Resolves product and category names by product id"""

    def __init__(self, db: Session):
        self.db = db

    def lookup_many(self, product_ids: Iterable[int]) -> Dict[int, ProductInfo]:
        """Resolve several products in one query; unknown ids are omitted."""
        ids = {product_id for product_id in product_ids if product_id is not None}
        if not ids:
            return {}

        products = (
            self.db.query(MenuProduct)
            .options(joinedload(MenuProduct.category))
            .filter(MenuProduct.id.in_(ids))
            .all()
        )
        return {
            product.id: ProductInfo(
                product_id=product.id,
                name=product.name,
                category=product.category.name if product.category else "",
                kind=product.kind,
            )
            for product in products
        }
